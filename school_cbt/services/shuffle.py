"""
services/shuffle.py

문제 및 보기 셔플, 저장된 순서 복원.
Pure functions: inputs are never mutated, a `random.Random` can be injected
so that tests get a deterministic order.
"""

import random
from typing import List, Mapping, Optional, Sequence, Tuple, TypeVar

from school_cbt.models.test_model import Question

T = TypeVar("T")


def shuffle_list(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """
    Return a uniformly random permutation of `items` (Fisher-Yates).

    Each position i, walking from the end, is swapped with a position chosen
    uniformly from 0..i inclusive.
    """
    rng = rng or random.Random()
    out = list(items)
    for i in range(len(out) - 1, 0, -1):
        j = rng.randint(0, i)
        out[i], out[j] = out[j], out[i]
    return out


def shuffle_with_tracking(
    options: Sequence[str],
    correct_index: Optional[int],
    rng: Optional[random.Random] = None,
) -> Tuple[List[str], Optional[int]]:
    """
    Shuffle options and report where the correct one ended up.

    Options are paired with their original index before shuffling so that
    duplicate option texts cannot confuse the lookup.

    Returns:
        (shuffled options, new correct index). The index stays None when the
        server did not reveal the correct option.
    """
    pairs = shuffle_list(list(enumerate(options)), rng)
    shuffled = [opt for _, opt in pairs]
    if correct_index is None:
        return shuffled, None
    new_index = next(pos for pos, (orig, _) in enumerate(pairs) if orig == correct_index)
    return shuffled, new_index


def shuffle_question_options(question: Question, rng: Optional[random.Random] = None) -> Question:
    """Objective questions get a reordered copy, theory questions are returned as-is."""
    if not question.is_objective or not question.options:
        return question
    options, correct = shuffle_with_tracking(question.options, question.correct_option_index, rng)
    return question.model_copy(update={"options": options, "correct_option_index": correct})


def prepare_questions(
    questions: Sequence[Question],
    shuffle_questions: bool,
    shuffle_options: bool,
    rng: Optional[random.Random] = None,
) -> List[Question]:
    """Working question order for one attempt: question shuffle first, then options."""
    working = list(questions)
    if shuffle_questions:
        working = shuffle_list(working, rng)
    if shuffle_options:
        working = [shuffle_question_options(q, rng) for q in working]
    return working


def restore_order(
    questions: Sequence[Question],
    question_order: Sequence[str],
    option_order: Mapping[str, Sequence[str]],
) -> Optional[List[Question]]:
    """
    Put a freshly prepared question list back into a saved working order.

    `question_order` lists question ids, `option_order` the option texts of
    each objective question as they were shown. The correct index follows its
    option. An empty `question_order` keeps `questions` as they are.

    Returns None when the saved order does not describe these questions
    (the test changed since the snapshot was written).
    """
    if not question_order:
        return list(questions)
    by_id = {q.id: q for q in questions}
    if sorted(question_order) != sorted(by_id):
        return None

    ordered = []
    for qid in question_order:
        q = by_id[qid]
        saved = option_order.get(qid)
        if q.is_objective and saved is not None:
            if sorted(saved) != sorted(q.options):
                return None
            correct = None
            if q.correct_option_index is not None:
                correct = list(saved).index(q.options[q.correct_option_index])
            q = q.model_copy(update={"options": list(saved), "correct_option_index": correct})
        ordered.append(q)
    return ordered
