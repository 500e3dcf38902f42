from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from x402_interceptor.config import AuthorizationType


def _validate_integer_string(value: str, field_name: str) -> str:
    try:
        int(value)
    except ValueError:
        raise ValueError(f"{field_name} must be an integer encoded as a string")
    return value


class PaymentRequirements(BaseModel):
    """One acceptable way to pay, as advertised by the server in a 402 body."""

    scheme: str
    network: str
    max_amount_required: str
    resource: str = ""
    description: str = ""
    mime_type: str = ""
    output_schema: Optional[Any] = None
    pay_to: str
    max_timeout_seconds: int
    asset: str
    extra: Optional[dict[str, Any]] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        frozen=True,
    )

    @field_validator("max_amount_required")
    def validate_max_amount_required(cls, v):
        return _validate_integer_string(v, "max_amount_required")

    @field_validator("max_timeout_seconds")
    def validate_max_timeout_seconds(cls, v):
        if v < 0:
            raise ValueError("max_timeout_seconds must not be negative")
        return v

    @property
    def authorization_type(self) -> Optional[AuthorizationType]:
        """Authorization type this requirement accepts.

        The scheme names the authorization type directly, or an ``exact``
        requirement names it in ``extra.authorizationType``. A bare ``exact``
        requirement is an EIP-3009 requirement.
        """
        try:
            return AuthorizationType(self.scheme)
        except ValueError:
            pass
        if self.scheme != "exact":
            return None
        declared = (self.extra or {}).get("authorizationType")
        if declared is None:
            return AuthorizationType.EIP3009
        try:
            return AuthorizationType(declared)
        except ValueError:
            return None


# Returned by a server as json alongside a 402 response code
class x402PaymentRequiredResponse(BaseModel):
    x402_version: int
    accepts: list[PaymentRequirements]
    error: Optional[str] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class EIP3009Authorization(BaseModel):
    from_: str = Field(alias="from")
    to: str
    value: str
    valid_after: str
    valid_before: str
    nonce: str

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    @field_validator("value", "valid_after", "valid_before")
    def validate_integers(cls, v, info):
        return _validate_integer_string(v, info.field_name)


class EIP3009Payload(BaseModel):
    signature: str
    authorization: EIP3009Authorization

    model_config = ConfigDict(frozen=True)


class PermitAuthorization(BaseModel):
    owner: str
    spender: str
    value: str
    nonce: str
    deadline: str

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    @field_validator("value", "nonce", "deadline")
    def validate_integers(cls, v, info):
        return _validate_integer_string(v, info.field_name)


class PermitPayload(BaseModel):
    signature: str
    authorization: PermitAuthorization

    model_config = ConfigDict(frozen=True)


class TokenPermissions(BaseModel):
    token: str
    amount: str

    model_config = ConfigDict(frozen=True)

    @field_validator("amount")
    def validate_amount(cls, v):
        return _validate_integer_string(v, "amount")


class Permit2Authorization(BaseModel):
    from_: str = Field(alias="from")
    permitted: TokenPermissions
    spender: str
    nonce: str
    deadline: str
    to: str

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    @field_validator("nonce", "deadline")
    def validate_integers(cls, v, info):
        return _validate_integer_string(v, info.field_name)


class Permit2Payload(BaseModel):
    signature: str
    permit2_authorization: Permit2Authorization

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# Union of payloads for each authorization type
AuthorizationPayload = Union[EIP3009Payload, PermitPayload, Permit2Payload]

PAYLOAD_MODELS: dict[AuthorizationType, type[BaseModel]] = {
    AuthorizationType.EIP3009: EIP3009Payload,
    AuthorizationType.PERMIT: PermitPayload,
    AuthorizationType.PERMIT2: Permit2Payload,
}


def _payload_for_tag(data: Any, tag_field: str) -> Any:
    """Validate a raw payload dict against the model named by the tag field."""
    if not isinstance(data, dict):
        return data
    payload = data.get("payload")
    if not isinstance(payload, dict):
        return data
    try:
        authorization_type = AuthorizationType(data.get(tag_field))
    except ValueError:
        return data
    return {**data, "payload": PAYLOAD_MODELS[authorization_type].model_validate(payload)}


def _check_payload_matches(authorization_type: AuthorizationType, payload: BaseModel) -> None:
    expected = PAYLOAD_MODELS[authorization_type]
    if not isinstance(payload, expected):
        raise ValueError(
            f"payload of type {type(payload).__name__} does not match "
            f"authorization type {authorization_type.value}"
        )


class SignedAuthorization(BaseModel):
    """A signed authorization produced by one of the EVM strategies.

    Built once per retried request and consumed by the header codec.
    """

    authorization_type: AuthorizationType
    network: str
    payload: AuthorizationPayload

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _select_payload_model(cls, data: Any) -> Any:
        return _payload_for_tag(data, "authorization_type")

    @model_validator(mode="after")
    def _validate_payload_tag(self) -> "SignedAuthorization":
        _check_payload_matches(self.authorization_type, self.payload)
        return self


class PaymentPayload(BaseModel):
    """Structure carried (base64 encoded) in the X-PAYMENT request header."""

    x402_version: int
    scheme: AuthorizationType
    network: str
    payload: AuthorizationPayload

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _select_payload_model(cls, data: Any) -> Any:
        return _payload_for_tag(data, "scheme")

    @model_validator(mode="after")
    def _validate_payload_tag(self) -> "PaymentPayload":
        _check_payload_matches(self.scheme, self.payload)
        return self

    @classmethod
    def from_signed_authorization(
        cls, x402_version: int, signed: SignedAuthorization
    ) -> "PaymentPayload":
        return cls(
            x402_version=x402_version,
            scheme=signed.authorization_type,
            network=signed.network,
            payload=signed.payload,
        )

    def to_signed_authorization(self) -> SignedAuthorization:
        return SignedAuthorization(
            authorization_type=self.scheme,
            network=self.network,
            payload=self.payload,
        )


class PaymentResponseReceipt(BaseModel):
    """Settlement receipt decoded from the X-PAYMENT-RESPONSE header."""

    success: bool
    error_reason: Optional[str] = None
    transaction: Optional[str] = None
    network: Optional[str] = None
    payer: Optional[str] = None
    scheme: Optional[str] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
