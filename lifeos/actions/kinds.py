"""The closed set of actions the assistant can ask for."""

from enum import StrEnum


class ActionKind(StrEnum):
    # Tasks
    ADD_TASK = "ADD_TASK"
    UPDATE_TASK = "UPDATE_TASK"
    DELETE_TASK = "DELETE_TASK"
    COMPLETE_TASK = "COMPLETE_TASK"

    # Finance
    ADD_EXPENSE = "ADD_EXPENSE"
    ADD_INCOME = "ADD_INCOME"
    DELETE_EXPENSE = "DELETE_EXPENSE"
    EDIT_EXPENSE = "EDIT_EXPENSE"
    EDIT_INCOME = "EDIT_INCOME"
    ADD_SPECIAL_EXPENSE = "ADD_SPECIAL_EXPENSE"
    ADD_SPECIAL_INCOME = "ADD_SPECIAL_INCOME"
    TOGGLE_SPECIAL = "TOGGLE_SPECIAL"

    # Budgets
    ADD_BUDGET = "ADD_BUDGET"
    UPDATE_BUDGET = "UPDATE_BUDGET"
    DELETE_BUDGET = "DELETE_BUDGET"
    ADD_SPECIAL_BUDGET = "ADD_SPECIAL_BUDGET"

    # Savings
    ADD_SAVINGS = "ADD_SAVINGS"
    ADD_TO_SAVINGS = "ADD_TO_SAVINGS"
    WITHDRAW_FROM_SAVINGS = "WITHDRAW_FROM_SAVINGS"
    UPDATE_SAVINGS = "UPDATE_SAVINGS"
    DELETE_SAVINGS = "DELETE_SAVINGS"
    ADD_SPECIAL_SAVINGS = "ADD_SPECIAL_SAVINGS"

    # Notes
    ADD_NOTE = "ADD_NOTE"
    UPDATE_NOTE = "UPDATE_NOTE"
    DELETE_NOTE = "DELETE_NOTE"

    # Habits
    ADD_HABIT = "ADD_HABIT"
    COMPLETE_HABIT = "COMPLETE_HABIT"
    DELETE_HABIT = "DELETE_HABIT"

    # Inventory
    ADD_INVENTORY = "ADD_INVENTORY"
    UPDATE_INVENTORY = "UPDATE_INVENTORY"
    DELETE_INVENTORY = "DELETE_INVENTORY"
    SELL_INVENTORY = "SELL_INVENTORY"

    # Study
    ADD_STUDY_SUBJECT = "ADD_STUDY_SUBJECT"
    ADD_STUDY_CHAPTER = "ADD_STUDY_CHAPTER"
    UPDATE_STUDY_PROGRESS = "UPDATE_STUDY_PROGRESS"
    DELETE_STUDY_CHAPTER = "DELETE_STUDY_CHAPTER"

    # Conversational (never touch a store)
    CHAT = "CHAT"
    UNKNOWN = "UNKNOWN"
    GET_SUMMARY = "GET_SUMMARY"
    ANALYZE_BUDGET = "ANALYZE_BUDGET"
    CLARIFY = "CLARIFY"
    NAVIGATE = "NAVIGATE"

    @classmethod
    def parse(cls, value: object) -> "ActionKind | None":
        """Look up an action by its wire name (case and spacing tolerant)."""
        if not isinstance(value, str):
            return None
        key = value.strip().upper().replace(" ", "_").replace("-", "_")
        try:
            return cls(key)
        except ValueError:
            return None
