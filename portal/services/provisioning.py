import time
import logging
import secrets
from urllib.parse import urlparse, urlunparse

import httpx
from sqlalchemy.orm import Session

from portal.core.authz import RequestContext, requires_role
from portal.core.config import get_settings
from portal.core.errors import NotFound, PermissionDenied, ValidationError
from portal.models import (
    ApiLog,
    ApiSetting,
    MasterCategory,
    UserProduct,
    UserProductEndpoint,
    UserRole,
)
from portal.services.catalog import parse_master_category


settings = get_settings()
logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.broadband.is/api"
DEFAULT_MASTER_CATEGORY = MasterCategory.MTN_GSM


def normalize_base_url(raw_url: str) -> str:
    url = str(raw_url or "").strip()
    if not url:
        return DEFAULT_BASE_URL

    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()
    path = (parsed.path or "").rstrip("/")
    if host.endswith("broadband.is") and not path:
        path = "/api"

    scheme = parsed.scheme or "https"
    netloc = parsed.netloc or host
    normalized = urlunparse((scheme, netloc, path, "", "", ""))
    return normalized.rstrip("/")


def credentials_for(master_category: MasterCategory) -> tuple[str, str] | None:
    if master_category == MasterCategory.MTN_FIXED:
        username, password = settings.mtn_fixed_username, settings.mtn_fixed_password
    else:
        username, password = settings.mtn_gsm_username, settings.mtn_gsm_password
    if not username or not password:
        return None
    return username, password


class ProvisioningApiError(Exception):
    def __init__(self, message: str, *, status_code: int | None = None, raw: str | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.raw = raw


class ProvisioningClient:
    def __init__(self, master_category: MasterCategory = DEFAULT_MASTER_CATEGORY):
        self.master_category = master_category
        self.base_url = normalize_base_url(str(settings.provisioning_base_url))
        self.timeout = settings.provisioning_timeout_seconds
        self.retry_count = settings.provisioning_retry_count
        self.test_mode = settings.provisioning_test_mode

    def _auth(self) -> httpx.BasicAuth | None:
        creds = credentials_for(self.master_category)
        if creds is None:
            return None
        return httpx.BasicAuth(*creds)

    def _extract_error_message(self, response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            data = {}
        if isinstance(data, dict):
            for key in ("message", "detail", "error"):
                value = data.get(key)
                if isinstance(value, str) and value.strip():
                    return value.strip()
        text = (response.text or "").strip()
        return text[:300] if text else f"HTTP {response.status_code}"

    def _url(self, path: str) -> str:
        path = str(path or "").strip()
        if path.startswith(("http://", "https://")):
            return path
        if not path.startswith("/"):
            path = "/" + path
        return f"{self.base_url}{path}"

    def request(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        payload: dict | None = None,
        *,
        headers: dict | None = None,
    ) -> dict:
        if self.test_mode:
            # Never leaves the process.
            return {
                "success": True,
                "reference": f"BB-TEST-{int(time.time())}",
                "message": "Test mode: simulated provisioning call.",
                "params": dict(params or {}),
            }

        url = self._url(path)
        last_exc = None
        for attempt in range(self.retry_count + 1):
            start = time.time()
            try:
                with httpx.Client(timeout=self.timeout, auth=self._auth()) as client:
                    response = client.request(method, url, params=params, json=payload, headers=headers)
                duration_ms = round((time.time() - start) * 1000, 2)
                logger.info(
                    "Provisioning API %s %s status=%s duration=%sms", method, path, response.status_code, duration_ms
                )
                if response.status_code >= 400:
                    message = self._extract_error_message(response)
                    raise ProvisioningApiError(message, status_code=response.status_code, raw=response.text)
                try:
                    return response.json()
                except ValueError as exc:
                    raise ProvisioningApiError(
                        "Provisioning API returned invalid JSON response.",
                        status_code=response.status_code,
                        raw=response.text,
                    ) from exc
            except ProvisioningApiError as exc:
                last_exc = exc
                # Client/auth errors are definitive.
                if exc.status_code is not None and exc.status_code < 500 and exc.status_code != 429:
                    raise last_exc
                if attempt < self.retry_count:
                    time.sleep(0.5 * (attempt + 1))
                    continue
                raise last_exc
            except (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError) as exc:
                last_exc = ProvisioningApiError("Unable to reach provisioning API.", raw=str(exc))
                if attempt < self.retry_count:
                    time.sleep(0.5 * (attempt + 1))
                    continue
                raise last_exc


# API settings


@requires_role(UserRole.ADMIN)
def list_api_settings(db: Session, ctx: RequestContext) -> list[ApiSetting]:
    return db.query(ApiSetting).order_by(ApiSetting.id.asc()).all()


@requires_role(UserRole.ADMIN)
def save_api_setting(
    db: Session,
    ctx: RequestContext,
    *,
    name: str,
    endpoint: str,
    master_category,
    is_enabled: bool = True,
    setting_id: int | None = None,
) -> ApiSetting:
    name = str(name or "").strip()
    endpoint = str(endpoint or "").strip()
    if not name:
        raise ValidationError("Name is required", field="name")
    if not endpoint:
        raise ValidationError("Endpoint is required", field="endpoint")
    master = parse_master_category(master_category)

    if setting_id is not None:
        setting = db.get(ApiSetting, setting_id)
        if not setting:
            raise NotFound("API setting", setting_id)
    else:
        setting = ApiSetting()
        db.add(setting)
    setting.name = name
    setting.endpoint = endpoint
    setting.master_category = master
    setting.is_enabled = bool(is_enabled)
    db.commit()
    db.refresh(setting)
    return setting


# Endpoint execution


def _endpoint_for(db: Session, ctx: RequestContext, endpoint_id: int) -> UserProductEndpoint:
    endpoint = db.get(UserProductEndpoint, endpoint_id)
    if not endpoint:
        raise NotFound("Endpoint", endpoint_id)
    if not ctx.is_admin and endpoint.user_product.user_id != ctx.user_id:
        raise PermissionDenied("Endpoint belongs to another reseller")
    return endpoint


def master_category_for(user_product: UserProduct) -> MasterCategory:
    category = user_product.product.category if user_product.product else None
    if category is None or category.master_category is None:
        return DEFAULT_MASTER_CATEGORY
    return category.master_category


def build_params(endpoint: UserProductEndpoint, params: dict | None = None) -> dict:
    """Stored custom parameters, then caller params, then the account identifiers."""
    merged = dict(endpoint.custom_parameters or {})
    merged.update(params or {})
    user_product = endpoint.user_product
    if user_product.username:
        merged["username"] = user_product.username
    if user_product.msisdn:
        merged["msisdn"] = user_product.msisdn
    return merged


@requires_role(UserRole.ADMIN, UserRole.RESELLER)
def run_user_product_endpoint(
    db: Session,
    ctx: RequestContext,
    endpoint_id: int,
    params: dict | None = None,
    *,
    client: ProvisioningClient | None = None,
) -> dict:
    endpoint = _endpoint_for(db, ctx, endpoint_id)
    setting = endpoint.api_setting
    if setting is None or not setting.is_enabled:
        raise ValidationError("API endpoint is disabled", field="api_setting_id")

    master = master_category_for(endpoint.user_product)
    client = client or ProvisioningClient(master)
    query = build_params(endpoint, params)
    reference = f"API_{secrets.token_hex(8)}"

    start = time.time()
    status_code = 200
    try:
        result = client.request("GET", setting.endpoint, params=query, headers=endpoint.headers or None)
    except ProvisioningApiError as exc:
        status_code = exc.status_code or 502
        raise
    finally:
        db.add(
            ApiLog(
                user_id=endpoint.user_product.user_id,
                service=f"provisioning:{master.value}",
                endpoint=setting.endpoint[:255],
                status_code=status_code,
                duration_ms=round((time.time() - start) * 1000, 2),
                reference=reference,
                success=1 if status_code < 400 else 0,
            )
        )
        db.commit()

    logger.info(
        "Endpoint run endpoint_id=%s user_product_id=%s master=%s reference=%s",
        endpoint.id,
        endpoint.user_product_id,
        master.value,
        reference,
    )
    return result
