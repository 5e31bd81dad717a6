"""Account (credential) endpoints."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, File, Form, UploadFile, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from securedata.api.deps import PrincipalDep, ServiceDep
from securedata.core.passwords import generate_strong_password

router = APIRouter()


class AccountResponse(BaseModel):
    """Response model for an account."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    owner: str
    website: str
    name: str
    username: str
    email: str
    password: str
    logo: str
    note: str | None = None
    attached_file: str | None = Field(default=None, serialization_alias="attachedFile")
    serial_number: int = Field(..., serialization_alias="serialNumber")
    created_at: datetime = Field(..., serialization_alias="createdAt")
    updated_at: datetime = Field(..., serialization_alias="updatedAt")


class PasswordResponse(BaseModel):
    """Response model for a generated password."""

    password: str


def _form_fields(
    website: str | None,
    name: str | None,
    username: str | None,
    email: str | None,
    password: str | None,
    note: str | None,
) -> dict[str, str | None]:
    # Absent fields are left out so validation reports them as required
    fields = {
        "website": website,
        "name": name,
        "username": username,
        "email": email,
        "password": password,
    }
    fields = {key: value for key, value in fields.items() if value is not None}
    fields["note"] = note
    return fields


@router.get("/accounts/generate-password", response_model=PasswordResponse)
async def generate_password(principal: PrincipalDep) -> PasswordResponse:
    """Generate a strong password."""
    return PasswordResponse(password=generate_strong_password())


@router.get("/accounts/files/{filename}")
async def view_file(
    filename: str,
    principal: PrincipalDep,
    service: ServiceDep,
) -> StreamingResponse:
    """
    Stream an attached file for inline display.

    Directory components in the requested name are ignored.
    """
    served = service.attachments.serve(filename)
    return StreamingResponse(
        served.stream(),
        media_type=served.content_type,
        headers=served.headers(),
    )


@router.post(
    "/accounts",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_account(
    principal: PrincipalDep,
    service: ServiceDep,
    website: Annotated[str | None, Form()] = None,
    name: Annotated[str | None, Form()] = None,
    username: Annotated[str | None, Form()] = None,
    email: Annotated[str | None, Form()] = None,
    password: Annotated[str | None, Form()] = None,
    note: Annotated[str | None, Form()] = None,
    attached_file: Annotated[UploadFile | None, File(alias="attachedFile")] = None,
) -> AccountResponse:
    """Create a new account owned by the caller."""
    account = await service.create(
        principal,
        _form_fields(website, name, username, email, password, note),
        attached_file,
    )
    return AccountResponse.model_validate(account)


@router.get("/accounts", response_model=list[AccountResponse])
async def list_accounts(
    principal: PrincipalDep,
    service: ServiceDep,
) -> list[AccountResponse]:
    """List all accounts owned by the caller."""
    return [AccountResponse.model_validate(a) for a in service.list(principal)]


@router.get("/accounts/{account_id}", response_model=AccountResponse)
async def get_account(
    account_id: str,
    principal: PrincipalDep,
    service: ServiceDep,
) -> AccountResponse:
    """Get an account by ID (owner or admin)."""
    return AccountResponse.model_validate(service.get(principal, account_id))


@router.put("/accounts/{account_id}", response_model=AccountResponse)
async def update_account(
    account_id: str,
    principal: PrincipalDep,
    service: ServiceDep,
    website: Annotated[str | None, Form()] = None,
    name: Annotated[str | None, Form()] = None,
    username: Annotated[str | None, Form()] = None,
    email: Annotated[str | None, Form()] = None,
    password: Annotated[str | None, Form()] = None,
    note: Annotated[str | None, Form()] = None,
    attached_file: Annotated[UploadFile | None, File(alias="attachedFile")] = None,
) -> AccountResponse:
    """Update an account (owner only)."""
    account = await service.update(
        principal,
        account_id,
        _form_fields(website, name, username, email, password, note),
        attached_file,
    )
    return AccountResponse.model_validate(account)


@router.delete("/accounts/{account_id}")
async def delete_account(
    account_id: str,
    principal: PrincipalDep,
    service: ServiceDep,
) -> dict:
    """Delete an account and its attachment (owner only)."""
    service.delete(principal, account_id)
    return {"message": "Account removed"}
