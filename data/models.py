from dataclasses import dataclass
from typing import Optional


CATEGORY_SHORT = "short"
CATEGORY_LONG = "long"
CATEGORIES = (CATEGORY_SHORT, CATEGORY_LONG)

RESPONSE_LEFT = "left"
RESPONSE_RIGHT = "right"
RESPONSES = (RESPONSE_LEFT, RESPONSE_RIGHT)

FREQUENT = "frequent"
INFREQUENT = "infrequent"
FREQUENCY_CLASSES = (FREQUENT, INFREQUENT)


@dataclass(frozen=True)
class TaskPattern:
    """
    Какая категория (длина рта) на какой клавише и какая из них "frequent".
    """
    left_category: str
    right_category: str
    frequent_category: str
    pattern_id: int = 0

    @property
    def infrequent_category(self) -> str:
        if self.frequent_category == self.left_category:
            return self.right_category
        return self.left_category

    def response_for(self, category: str) -> str:
        if category == self.left_category:
            return RESPONSE_LEFT
        if category == self.right_category:
            return RESPONSE_RIGHT
        raise ValueError(f"Unknown category: {category}")

    def frequency_of(self, category: str) -> str:
        return FREQUENT if category == self.frequent_category else INFREQUENT


@dataclass(frozen=True)
class TrialSpec:
    """
    Что нужно показать в конкретном trial-е
    """
    category: str               # "short" или "long"
    correct_response: str       # "left" или "right"
    frequency_class: str        # "frequent" или "infrequent"
    reward_eligible: bool
    trial_index: int = 0        # 1..300, 0 пока блок не собран
    block_index: int = 0
    stimulus: str = ""


@dataclass(frozen=True)
class RewardState:
    """
    Флаги, которые переносятся между trial-ами (отложенная награда).
    """
    new_reward_frequent: bool = False
    new_reward_infrequent: bool = False
    feedback: bool = False
    points_total: int = 0


@dataclass(frozen=True)
class TrialEvent:
    """
    Результат попытки - что сделал участник в trial-е
    """
    trial_index: int
    block_index: int
    category: str
    frequency_class: str
    reward_eligible: bool

    correct_response: str
    response: Optional[str]     # None если не ответил
    is_correct: bool

    reward_granted: bool
    new_reward_frequent: bool
    new_reward_infrequent: bool
    points_total: int
