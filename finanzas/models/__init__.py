# -*- coding: utf-8 -*-
from finanzas.database import db

from .profile import Profile, Subscription
from .transaction import Transaction
from .category import Category, Subcategory
from .budget import BudgetConfig, BudgetPocket
from .goal import Goal
from .notification import Notification, NotificationRead

__all__ = [
    "db",
    "Profile",
    "Subscription",
    "Transaction",
    "Category",
    "Subcategory",
    "BudgetConfig",
    "BudgetPocket",
    "Goal",
    "Notification",
    "NotificationRead",
]
