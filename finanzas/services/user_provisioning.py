# -*- coding: utf-8 -*-
"""
Find-or-provision users by email for webhook handlers.

Lookup order: local profile (case-insensitive email), then the identity
platform's full user list, and only then a new auto-confirmed identity with
no password. The profile is upserted in every branch, so a redelivered event
never provisions a second identity for the same email.
"""
from dataclasses import dataclass
from typing import Optional

from finanzas.database.repositories import AdminRepository
from finanzas.database.seed import provision_default_categories
from finanzas.services.identity_platform import IdentityPlatformClient
from finanzas.services.structured_logging import get_logger

logger = get_logger('finanzas.webhooks')


@dataclass
class ProvisionedUser:
    id: str
    email: str
    full_name: Optional[str] = None
    created: bool = False  # a new identity was created on the platform


class UserProvisioner:
    def __init__(self, identity: IdentityPlatformClient, repo: Optional[AdminRepository] = None):
        self.identity = identity
        self.repo = repo or AdminRepository()

    def find_or_create(self, email: str, full_name: Optional[str] = None) -> ProvisionedUser:
        email = email.strip().lower()

        profile = self.repo.find_profile_by_email(email)
        if profile is not None:
            if full_name and not profile.full_name:
                profile.full_name = full_name
            return ProvisionedUser(profile.id, profile.email, profile.full_name)

        identity = self.identity.admin_find_user_by_email(email)
        created = False
        if identity is None:
            identity = self.identity.admin_create_user(email, full_name=full_name)
            created = True
            logger.info("Provisioned identity for webhook email", user_id=identity.get("id"))

        metadata = identity.get("user_metadata") or {}
        name = full_name or metadata.get("full_name")
        profile = self.repo.upsert_profile(identity["id"], identity.get("email") or email, full_name=name)
        provision_default_categories(profile.id, self.repo)
        return ProvisionedUser(profile.id, profile.email, profile.full_name, created=created)
