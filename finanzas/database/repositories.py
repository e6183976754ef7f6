# -*- coding: utf-8 -*-
"""
Data access for request handlers and trusted internal paths.

Two repository types with different reach:

- ``OwnedRepository`` is bound to one caller. Every query it issues is
  filtered by that caller's user id, so a handler cannot read or touch a row
  it does not own; a foreign id looks exactly like a missing one.
- ``AdminRepository`` is for webhooks, subscription resolution, registration
  and seeding. It can reach any row, and every method that works on a
  user's data still takes the user id explicitly and filters by it.
"""
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from finanzas.database import db
from finanzas.models import (
    BudgetConfig,
    BudgetPocket,
    Category,
    Notification,
    NotificationRead,
    Profile,
    Subcategory,
    Subscription,
    Transaction,
)
from finanzas.utils.dates import utcnow

UNSET = object()


class OwnedRepository:
    """Caller-scoped access; every query filters on ``user_id``."""

    def __init__(self, user_id: str, session=None):
        if not user_id:
            raise ValueError("OwnedRepository requires a user id")
        self.user_id = user_id
        self.session = session or db.session

    # --- generic helpers ---
    def query(self, model):
        return self.session.query(model).filter(model.user_id == self.user_id)

    def get(self, model, entity_id: str):
        return self.query(model).filter(model.id == entity_id).first()

    def add(self, entity):
        entity.user_id = self.user_id
        self.session.add(entity)
        self.session.flush()
        return entity

    def delete(self, entity):
        if entity.user_id != self.user_id:
            raise PermissionError("entity is not owned by the caller")
        self.session.delete(entity)
        self.session.flush()

    def commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()

    # --- transactions ---
    def transactions_between(self, start: Optional[date], end: Optional[date], types=None) -> List[Transaction]:
        q = self.query(Transaction)
        if start is not None:
            q = q.filter(Transaction.date >= start)
        if end is not None:
            q = q.filter(Transaction.date <= end)
        if types:
            q = q.filter(Transaction.type.in_(types))
        return q.all()

    def count_transactions_in_category(self, name: str) -> int:
        return self.query(Transaction).filter(Transaction.category == name).count()

    # --- categories ---
    def find_category_by_name(self, name: str, type_: str, exclude_id: Optional[str] = None):
        q = self.query(Category).filter(
            Category.type == type_,
            func.lower(Category.name) == name.strip().lower(),
        )
        if exclude_id:
            q = q.filter(Category.id != exclude_id)
        return q.first()

    def find_subcategory_by_name(self, category_id: str, name: str, exclude_id: Optional[str] = None):
        q = self.query(Subcategory).filter(
            Subcategory.category_id == category_id,
            func.lower(Subcategory.name) == name.strip().lower(),
        )
        if exclude_id:
            q = q.filter(Subcategory.id != exclude_id)
        return q.first()

    # --- budget ---
    def budget_config(self, year: int) -> Optional[BudgetConfig]:
        return self.query(BudgetConfig).filter(BudgetConfig.year == year).first()

    def pockets(self) -> List[BudgetPocket]:
        return self.query(BudgetPocket).order_by(BudgetPocket.sort_order.asc(), BudgetPocket.created_at.asc()).all()

    # --- notifications ---
    def visible_notifications(self):
        """Personal notifications for the caller plus every broadcast."""
        return self.session.query(Notification).filter(
            or_(Notification.user_id == self.user_id, Notification.user_id.is_(None)))

    def get_visible_notification(self, notification_id: str) -> Optional[Notification]:
        return self.visible_notifications().filter(Notification.id == notification_id).first()

    def broadcast_read_ids(self) -> set:
        rows = self.session.query(NotificationRead.notification_id).filter(
            NotificationRead.user_id == self.user_id).all()
        return {row[0] for row in rows}

    def mark_broadcast_read(self, notification_id: str) -> None:
        exists = self.session.query(NotificationRead).filter(
            NotificationRead.notification_id == notification_id,
            NotificationRead.user_id == self.user_id,
        ).first()
        if exists is None:
            self.session.add(NotificationRead(notification_id=notification_id, user_id=self.user_id))
            self.session.flush()


class AdminRepository:
    """Elevated access for trusted internal paths."""

    def __init__(self, session=None):
        self.session = session or db.session

    def commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()

    # --- profiles ---
    def get_profile(self, user_id: str) -> Optional[Profile]:
        return self.session.query(Profile).filter(Profile.id == user_id).first()

    def find_profile_by_email(self, email: str) -> Optional[Profile]:
        if not email:
            return None
        return self.session.query(Profile).filter(
            func.lower(Profile.email) == email.strip().lower()).first()

    def upsert_profile(self, user_id: str, email: str, full_name=UNSET, subscription_status=UNSET) -> Profile:
        profile = self.get_profile(user_id)
        if profile is None:
            profile = Profile(id=user_id, email=email.strip().lower())
            self.session.add(profile)
        elif email:
            profile.email = email.strip().lower()
        if full_name is not UNSET and full_name:
            profile.full_name = full_name
        if subscription_status is not UNSET:
            profile.subscription_status = subscription_status
        self.session.flush()
        return profile

    def set_profile_status(self, user_id: str, status: Optional[str]) -> Optional[Profile]:
        profile = self.get_profile(user_id)
        if profile is not None:
            profile.subscription_status = status
            self.session.flush()
        return profile

    # --- subscriptions ---
    def active_subscriptions_for(self, user_id: str) -> List[Subscription]:
        """Active records for one user, latest period end first (open-ended last)."""
        return self.session.query(Subscription).filter(
            Subscription.user_id == user_id,
            Subscription.status == "active",
        ).order_by(
            Subscription.current_period_end.is_(None),
            Subscription.current_period_end.desc(),
        ).all()

    def find_subscription(self, provider: str, external_id: str) -> Optional[Subscription]:
        return self.session.query(Subscription).filter(
            Subscription.provider == provider,
            Subscription.external_id == external_id,
        ).first()

    def upsert_subscription(self, user_id: str, provider: str, external_id: str, status: str,
                            period_start=None, period_end=None) -> Tuple[Subscription, bool]:
        """
        Insert or update the record keyed on (provider, external_id).

        The storage-level unique constraint settles racing redeliveries: if a
        concurrent insert wins, the insert is retried once as an update.
        """
        record = self.find_subscription(provider, external_id)
        if record is not None:
            self._apply_subscription(record, user_id, status, period_start, period_end)
            self.session.flush()
            return record, False

        record = Subscription(
            user_id=user_id,
            provider=provider,
            external_id=external_id,
            status=status,
            current_period_start=period_start,
            current_period_end=period_end,
        )
        try:
            with self.session.begin_nested():
                self.session.add(record)
                self.session.flush()
            return record, True
        except IntegrityError:
            record = self.find_subscription(provider, external_id)
            if record is None:
                raise
            self._apply_subscription(record, user_id, status, period_start, period_end)
            self.session.flush()
            return record, False

    @staticmethod
    def _apply_subscription(record, user_id, status, period_start, period_end):
        record.user_id = user_id
        record.status = status
        if period_start is not None:
            record.current_period_start = period_start
        if period_end is not None:
            record.current_period_end = period_end
        record.updated_at = utcnow()

    def update_subscription_status(self, provider: str, external_id: str, status: str,
                                   period_end=UNSET) -> Optional[Subscription]:
        record = self.find_subscription(provider, external_id)
        if record is None:
            return None
        record.status = status
        if period_end is not UNSET:
            record.current_period_end = period_end
        record.updated_at = utcnow()
        self.session.flush()
        return record

    # --- categories ---
    def categories_for(self, user_id: str) -> List[Category]:
        return self.session.query(Category).filter(Category.user_id == user_id).all()

    def add_category(self, user_id: str, name: str, type_: str, icon: str, color: str) -> Category:
        category = Category(user_id=user_id, name=name, type=type_, icon=icon, color=color)
        self.session.add(category)
        self.session.flush()
        return category

    # --- notifications ---
    def create_notification(self, title: str, message: Optional[str], type_: str,
                            user_id: Optional[str] = None) -> Notification:
        notification = Notification(user_id=user_id, title=title, message=message, type=type_, read=False)
        self.session.add(notification)
        self.session.flush()
        return notification


__all__ = [
    "OwnedRepository",
    "AdminRepository",
    "UNSET",
]
