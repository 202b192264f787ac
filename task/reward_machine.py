from typing import Optional, Tuple

from data.models import FREQUENCY_CLASSES, FREQUENT, RESPONSES, RewardState, TrialEvent, TrialSpec


def initial_reward_state() -> RewardState:
    return RewardState()


def reduce_reward(
    state: RewardState,
    frequency_class: str,
    reward_eligible: bool,
    is_correct: bool,
    reward_amount: int = 5,
) -> Tuple[bool, RewardState]:
    """
    Решает, выдаётся ли награда за trial, и возвращает новое состояние.

    Если на reward-trial-е был неверный ответ, награда "откладывается"
    (new_reward_*) до следующего верного ответа на trial того же класса.

    Возвращает (reward_granted, new_state).
    """
    if frequency_class not in FREQUENCY_CLASSES:
        raise ValueError(f"Unknown frequency class: {frequency_class}")

    is_frequent = frequency_class == FREQUENT
    pending_frequent = state.new_reward_frequent
    pending_infrequent = state.new_reward_infrequent

    if is_correct:
        if reward_eligible:
            granted = True
            # отложенная награда этого класса "сгорает", её перекрыла текущая
            if pending_frequent and is_frequent:
                pending_frequent = False
            if pending_infrequent and not is_frequent:
                pending_infrequent = False
        else:
            granted = False
            if pending_frequent and is_frequent:
                granted = True
                pending_frequent = False
            if pending_infrequent and not is_frequent:
                granted = True
                pending_infrequent = False
    else:
        granted = False
        if reward_eligible:
            if is_frequent:
                pending_frequent = True
            else:
                pending_infrequent = True

    points = state.points_total + (reward_amount if granted else 0)
    return granted, RewardState(
        new_reward_frequent=pending_frequent,
        new_reward_infrequent=pending_infrequent,
        feedback=granted,
        points_total=points,
    )


def score_trial(
    trial: TrialSpec,
    response: Optional[str],
    state: RewardState,
    reward_amount: int = 5,
) -> Tuple[TrialEvent, RewardState]:
    if response is not None and response not in RESPONSES:
        raise ValueError(f"Unknown response: {response}")
    is_correct = response is not None and response == trial.correct_response
    granted, new_state = reduce_reward(
        state,
        trial.frequency_class,
        trial.reward_eligible,
        is_correct,
        reward_amount=reward_amount,
    )
    event = TrialEvent(
        trial_index=trial.trial_index,
        block_index=trial.block_index,
        category=trial.category,
        frequency_class=trial.frequency_class,
        reward_eligible=trial.reward_eligible,
        correct_response=trial.correct_response,
        response=response,
        is_correct=is_correct,
        reward_granted=granted,
        # флаги на момент начала trial-а
        new_reward_frequent=state.new_reward_frequent,
        new_reward_infrequent=state.new_reward_infrequent,
        points_total=new_state.points_total,
    )
    return event, new_state

