import math
from typing import List, Tuple

# Placeholder weights: longer answers earn a bonus, which rewards verbosity
# rather than accuracy. Kept for compatibility with existing scores.
QUESTIONS_WEIGHT = 50
NO_QUESTIONS_SCORE = 20
LENGTH_BONUS_STEPS = ((10, 10), (20, 10))  # (mean answer length above, bonus)

MAX_SCORE = 100


def _fold(value) -> str:
    return (value or "").strip().casefold()


def is_correct_answer(expected: str, provided: str) -> bool:
    expected, provided = _fold(expected), _fold(provided)

    if not expected:
        return False

    # verbose answers ("it was dark blue") still count
    return expected == provided or expected in provided


def calculate_verification_score(questions: List[dict], answers: List[dict]) -> Tuple[int, List[dict]]:
    """Grade a claimant's answers against the finder's challenge questions.

    Returns the confidence score (0-100) and one
    ``{"question", "answer", "is_correct"}`` entry per submitted answer.
    """
    questions = questions or []
    expected_by_question = {_fold(q.get("question")): q.get("answer") for q in questions}

    credited = set()
    details = []

    for submitted in answers:
        question = submitted.get("question") or ""
        answer = submitted.get("answer") or ""

        key = _fold(question)
        # each challenge question is credited once, repeats score nothing
        is_correct = (
            key in expected_by_question
            and key not in credited
            and is_correct_answer(expected_by_question[key], answer)
        )

        if is_correct:
            credited.add(key)

        details.append({
            "question": question,
            "answer": answer,
            "is_correct": is_correct,
        })

    if questions:
        score = len(credited) / len(questions) * QUESTIONS_WEIGHT
    else:
        score = NO_QUESTIONS_SCORE

    avg_answer_length = sum(len(d["answer"]) for d in details) / (len(details) or 1)

    for threshold, bonus in LENGTH_BONUS_STEPS:
        if avg_answer_length > threshold:
            score += bonus

    # round half up, then clamp
    score = int(math.floor(score + 0.5))
    return min(max(score, 0), MAX_SCORE), details
