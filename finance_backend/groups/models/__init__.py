from .expense import ExpenseSplit, GroupExpense
from .group import Group, GroupMember

__all__ = ["Group", "GroupMember", "GroupExpense", "ExpenseSplit"]
