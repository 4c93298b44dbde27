"""Login handshake for the Isracard/Amex family as an explicit state machine.

``transition`` is pure: it maps the current step and the response received in
that step to the next step. ``LoginFlow`` performs the I/O each state needs and
feeds the results through ``transition`` until a terminal state is reached.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, SecretStr, ValidationError

from cardledger.adapters.clients.transport import SessionTransport
from cardledger.adapters.isracard_amex.institution import InstitutionConfig
from cardledger.adapters.isracard_amex.logger import IsracardAmexLogger
from cardledger.core.progress import ProgressCallback, ScrapeProgress, log_progress
from cardledger.errors import TransportError
from cardledger.models.transaction import ScrapeErrorType
from cardledger.models.wire import LogonResponse, ValidateIdDataResponse, is_success

COUNTRY_CODE = "212"
ID_TYPE = "1"
CHECK_LEVEL = "1"

VALIDATE_OK = "1"
VALIDATE_CHANGE_PASSWORD = "4"
LOGON_OK = "1"
LOGON_CHANGE_PASSWORD = "3"


class LoginState(Enum):
    START = "START"
    NAVIGATED = "NAVIGATED"
    VALIDATING = "VALIDATING"
    VALIDATED = "VALIDATED"
    VALIDATION_REJECTED = "VALIDATION_REJECTED"
    LOGGING_IN = "LOGGING_IN"
    SUCCESS = "SUCCESS"
    CHANGE_PASSWORD_REQUIRED = "CHANGE_PASSWORD_REQUIRED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


TERMINAL_STATES = frozenset(
    {
        LoginState.SUCCESS,
        LoginState.CHANGE_PASSWORD_REQUIRED,
        LoginState.INVALID_CREDENTIALS,
        LoginState.UNKNOWN_ERROR,
    }
)

_TERMINAL_PROGRESS: dict[LoginState, ScrapeProgress] = {
    LoginState.SUCCESS: ScrapeProgress.LOGIN_SUCCESS,
    LoginState.CHANGE_PASSWORD_REQUIRED: ScrapeProgress.CHANGE_PASSWORD,
    LoginState.INVALID_CREDENTIALS: ScrapeProgress.LOGIN_FAILED,
    LoginState.UNKNOWN_ERROR: ScrapeProgress.LOGIN_FAILED,
}

_TERMINAL_ERRORS: dict[LoginState, ScrapeErrorType | None] = {
    LoginState.SUCCESS: None,
    LoginState.CHANGE_PASSWORD_REQUIRED: ScrapeErrorType.CHANGE_PASSWORD,
    LoginState.INVALID_CREDENTIALS: ScrapeErrorType.INVALID_PASSWORD,
    LoginState.UNKNOWN_ERROR: ScrapeErrorType.GENERAL,
}


class ScraperCredentials(BaseModel):
    id: str
    card6_digits: str
    password: SecretStr


@dataclass(frozen=True, slots=True)
class LoginStep:
    """Current state plus whatever the handshake carries forward."""

    state: LoginState
    username: str | None = None
    return_code: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES


@dataclass(frozen=True, slots=True)
class LoginOutcome:
    state: LoginState

    @property
    def success(self) -> bool:
        return self.state == LoginState.SUCCESS

    @property
    def error_type(self) -> ScrapeErrorType | None:
        return _TERMINAL_ERRORS[self.state]


def _validate_transition(response: Any) -> LoginStep:
    try:
        parsed = ValidateIdDataResponse.parse(response)
    except ValidationError:
        return LoginStep(LoginState.UNKNOWN_ERROR)
    bean = parsed.validate_id_data_bean
    if not is_success(parsed.header) or bean is None:
        return LoginStep(LoginState.UNKNOWN_ERROR)
    if bean.return_code == VALIDATE_OK:
        if not bean.user_name:
            return LoginStep(LoginState.UNKNOWN_ERROR)
        return LoginStep(LoginState.VALIDATED, username=bean.user_name)
    return LoginStep(LoginState.VALIDATION_REJECTED, return_code=bean.return_code)


def _logon_transition(response: Any) -> LoginStep:
    try:
        parsed = LogonResponse.parse(response)
    except ValidationError:
        return LoginStep(LoginState.INVALID_CREDENTIALS)
    if parsed.status == LOGON_OK:
        return LoginStep(LoginState.SUCCESS)
    if parsed.status == LOGON_CHANGE_PASSWORD:
        return LoginStep(LoginState.CHANGE_PASSWORD_REQUIRED)
    return LoginStep(LoginState.INVALID_CREDENTIALS)


def transition(step: LoginStep, response: Any = None) -> LoginStep:
    """Return the step that follows ``step`` given the response it produced.

    ``response`` is only read in VALIDATING (the ValidateIdData reply) and
    LOGGING_IN (the performLogonI reply); None there means no response.
    """
    state = step.state
    if state == LoginState.START:
        return LoginStep(LoginState.NAVIGATED)
    if state == LoginState.NAVIGATED:
        return LoginStep(LoginState.VALIDATING)
    if state == LoginState.VALIDATING:
        if response is None:
            return LoginStep(LoginState.UNKNOWN_ERROR)
        return _validate_transition(response)
    if state == LoginState.VALIDATED:
        return LoginStep(LoginState.LOGGING_IN, username=step.username)
    if state == LoginState.VALIDATION_REJECTED:
        if step.return_code == VALIDATE_CHANGE_PASSWORD:
            return LoginStep(LoginState.CHANGE_PASSWORD_REQUIRED)
        return LoginStep(LoginState.INVALID_CREDENTIALS)
    if state == LoginState.LOGGING_IN:
        if response is None:
            return LoginStep(LoginState.INVALID_CREDENTIALS)
        return _logon_transition(response)
    return step


def validate_request(
    credentials: ScraperCredentials, company_code: str
) -> dict[str, str]:
    return {
        "id": credentials.id,
        "cardSuffix": credentials.card6_digits,
        "countryCode": COUNTRY_CODE,
        "idType": ID_TYPE,
        "checkLevel": CHECK_LEVEL,
        "companyCode": company_code,
    }


def logon_request(
    credentials: ScraperCredentials, username: str | None
) -> dict[str, str | None]:
    return {
        "KodMishtamesh": username,
        "MisparZihuy": credentials.id,
        "Sisma": credentials.password.get_secret_value(),
        "cardSuffix": credentials.card6_digits,
        "countryCode": COUNTRY_CODE,
        "idType": ID_TYPE,
    }


class LoginFlow:
    """Drives the login state machine over a session transport."""

    def __init__(
        self,
        institution: InstitutionConfig,
        transport: SessionTransport,
        *,
        on_progress: ProgressCallback = log_progress,
    ) -> None:
        self._institution = institution
        self._transport = transport
        self._on_progress = on_progress
        self._logger = IsracardAmexLogger()

    @property
    def validate_url(self) -> str:
        return f"{self._institution.services_url}?reqName=ValidateIdData"

    @property
    def logon_url(self) -> str:
        return f"{self._institution.services_url}?reqName=performLogonI"

    async def _post_or_none(
        self, url: str, body: dict[str, Any], step: LoginStep
    ) -> Any:
        try:
            return await self._transport.post_json(url, body)
        except TransportError as e:
            self._logger.login_transport_error(step.state.value, e)
            return None

    async def _advance(
        self, step: LoginStep, credentials: ScraperCredentials
    ) -> LoginStep:
        if step.state == LoginState.START:
            try:
                await self._transport.navigate(self._institution.login_url)
            except TransportError as e:
                self._logger.login_transport_error(step.state.value, e)
                return LoginStep(LoginState.UNKNOWN_ERROR)
            return transition(step)
        if step.state == LoginState.NAVIGATED:
            self._on_progress(ScrapeProgress.LOGGING_IN)
            return transition(step)
        if step.state == LoginState.VALIDATING:
            body = validate_request(credentials, self._institution.company_code)
            response = await self._post_or_none(self.validate_url, body, step)
            return transition(step, response)
        if step.state == LoginState.LOGGING_IN:
            body = logon_request(credentials, step.username)
            response = await self._post_or_none(self.logon_url, body, step)
            return transition(step, response)
        return transition(step)

    async def login(self, credentials: ScraperCredentials) -> LoginOutcome:
        step = LoginStep(LoginState.START)
        while not step.is_terminal:
            self._logger.login_step(step.state.value)
            step = await self._advance(step, credentials)
        self._logger.login_finished(step.state.value)
        self._on_progress(_TERMINAL_PROGRESS[step.state])
        return LoginOutcome(state=step.state)
