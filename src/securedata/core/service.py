"""Credential service - the request-level orchestration of the vault.

Each operation walks the stages in ``Stage`` (validating, authorizing,
checking uniqueness, resolving the logo, persisting). The first failure
ends the request: taxonomy errors pass through unchanged, anything else
becomes ``InternalError``. Nothing is retried here; the logo resolver and
the connection supervisor handle their own failures.
"""

from __future__ import annotations

import logging
from collections.abc import Generator, Mapping
from contextlib import contextmanager
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from securedata.core.access import ensure_can_read, ensure_can_write
from securedata.core.attachments import AttachmentManager, Upload
from securedata.core.errors import (
    Conflict,
    InternalError,
    SecureDataError,
    ValidationError,
)
from securedata.core.logos import LogoResolver
from securedata.core.types import (
    Account,
    AccountDraft,
    AccountForm,
    AccountPatch,
    Principal,
    Stage,
)
from securedata.storage.db import get_supervisor
from securedata.storage.repos.accounts_repo import AccountsRepo

logger = logging.getLogger(__name__)

FIELD_MESSAGES = {
    "website": "Website is required",
    "name": "Name is required",
    "username": "Username is required",
    "email": "Please include a valid email",
    "password": "Password is required",
}


def validate_form(fields: Mapping[str, Any]) -> AccountForm:
    """
    Validate raw create/update fields.

    Raises:
        ValidationError: With one entry per offending field
    """
    try:
        return AccountForm.model_validate(dict(fields))
    except PydanticValidationError as exc:
        problems = []
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"])
            problems.append(
                {"field": field, "message": FIELD_MESSAGES.get(field, error["msg"])}
            )
        raise ValidationError(
            "; ".join(problem["message"] for problem in problems), fields=problems
        ) from exc


class _Progress:
    """Stage reached by the request currently being handled."""

    def __init__(self) -> None:
        self.stage = Stage.VALIDATING


class CredentialService:
    """Create, list, get, update and delete accounts on behalf of a principal."""

    def __init__(
        self,
        store: AccountsRepo,
        logos: LogoResolver,
        attachments: AttachmentManager,
    ):
        self.store = store
        self.logos = logos
        self.attachments = attachments

    @contextmanager
    def _track(self, operation: str) -> Generator[_Progress, None, None]:
        progress = _Progress()
        try:
            yield progress
        except SecureDataError as exc:
            logger.info(
                "%s failed at %s: %s (%s)",
                operation,
                progress.stage,
                exc.kind,
                exc.message,
            )
            progress.stage = Stage.ERROR
            raise
        except Exception as exc:
            logger.exception("%s failed at %s", operation, progress.stage)
            progress.stage = Stage.ERROR
            raise InternalError("Server Error") from exc
        progress.stage = Stage.DONE

    async def _store_upload(self, upload: Upload | None) -> str | None:
        if upload is None or not upload.filename:
            return None
        return await self.attachments.store(upload)

    async def create(
        self,
        principal: Principal,
        fields: Mapping[str, Any],
        upload: Upload | None = None,
    ) -> Account:
        """
        Create an account owned by the acting principal.

        Raises:
            ValidationError: Missing or malformed fields
            Conflict: Username or email already used for this website
            PayloadTooLarge: Attachment over the size cap
        """
        with self._track("create") as progress:
            form = validate_form(fields)

            progress.stage = Stage.CHECKING_UNIQUENESS
            duplicate = self.store.find_duplicate(
                form.website, form.username, form.email
            )
            if duplicate:
                raise Conflict(duplicate)

            progress.stage = Stage.RESOLVING_LOGO
            logger.info("Fetching logo for website: %s", form.website)
            logo = await self.logos.resolve(form.website)

            progress.stage = Stage.PERSISTING
            stored = await self._store_upload(upload)
            try:
                account = self.store.create(
                    AccountDraft(
                        owner=principal.id,
                        website=form.website,
                        name=form.name,
                        username=form.username,
                        email=form.email,
                        password=form.password,
                        logo=logo,
                        note=form.note,
                        attached_file=stored,
                    )
                )
            except Exception:
                self.attachments.remove(stored)
                raise

            logger.info("Account %s created with logo: %s", account.id, account.logo)
            return account

    def list(self, principal: Principal) -> list[Account]:
        """Get all accounts owned by the acting principal."""
        with self._track("list"):
            return self.store.list_by_owner(principal.id)

    def get(self, principal: Principal, account_id: str) -> Account:
        """
        Get one account.

        Raises:
            NotFound: No such account
            Unauthorized: Principal is neither the owner nor an admin
        """
        with self._track("get") as progress:
            progress.stage = Stage.AUTHORIZING
            account = self.store.get_by_id(account_id)
            ensure_can_read(account, principal)
            return account

    async def update(
        self,
        principal: Principal,
        account_id: str,
        fields: Mapping[str, Any],
        upload: Upload | None = None,
    ) -> Account:
        """
        Replace an account's fields. Owner only.

        The logo is re-resolved only when the website changes. A new upload
        replaces the previous attachment, which is then deleted.

        Raises:
            ValidationError, NotFound, Unauthorized, Conflict, PayloadTooLarge
        """
        with self._track("update") as progress:
            form = validate_form(fields)

            progress.stage = Stage.AUTHORIZING
            current = self.store.get_by_id(account_id)
            ensure_can_write(current, principal)

            progress.stage = Stage.RESOLVING_LOGO
            if form.website == current.website:
                logo = current.logo
            else:
                logo = await self.logos.resolve(form.website)

            progress.stage = Stage.PERSISTING
            stored = await self._store_upload(upload)
            try:
                account = self.store.update(
                    account_id,
                    AccountPatch(
                        website=form.website,
                        name=form.name,
                        username=form.username,
                        email=form.email,
                        password=form.password,
                        logo=logo,
                        note=form.note,
                        attached_file=stored or current.attached_file,
                    ),
                )
            except Exception:
                self.attachments.remove(stored)
                raise

            if stored and current.attached_file:
                self.attachments.remove(current.attached_file)
            return account

    def delete(self, principal: Principal, account_id: str) -> Account:
        """
        Delete an account and, best effort, its attachment. Owner only.

        Returns:
            The deleted account

        Raises:
            NotFound: No such account
            Unauthorized: Principal is not the owner
        """
        with self._track("delete") as progress:
            progress.stage = Stage.AUTHORIZING
            current = self.store.get_by_id(account_id)
            ensure_can_write(current, principal)

            progress.stage = Stage.PERSISTING
            deleted = self.store.delete(account_id)
            if deleted.attached_file:
                self.attachments.remove(deleted.attached_file)
            return deleted


# Default instance
_service: CredentialService | None = None


def get_service() -> CredentialService:
    """Get or create the default credential service."""
    global _service
    if _service is None:
        _service = CredentialService(
            store=AccountsRepo(get_supervisor()),
            logos=LogoResolver(),
            attachments=AttachmentManager(),
        )
    return _service


def set_service(service: CredentialService | None) -> None:
    """Set the default credential service (for testing)."""
    global _service
    _service = service
