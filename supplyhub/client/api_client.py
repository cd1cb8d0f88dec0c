# supplyhub/client/api_client.py
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Union

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 20
MAX_RETRIES = 3

# Retry these (typical transient / gateway)
RETRY_STATUS = {502, 503, 504}

TokenSource = Union[str, Callable[[], str], None]


class ApiClientError(Exception):
    def __init__(self, status: Optional[int], message: str, payload: Optional[Dict[str, Any]] = None):
        super().__init__(f"{message} (HTTP {status})" if status else message)
        self.status = status
        self.message = message
        self.payload = payload or {}

    @property
    def needs_registration(self) -> bool:
        return self.status == 404 and bool(self.payload.get("needsRegistration"))


def _safe_json(resp: requests.Response) -> Optional[Dict[str, Any]]:
    """
    Return JSON dict if response body is JSON, else None.
    Proxies answer 502/404 with HTML pages.
    """
    try:
        data = resp.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else {"data": data}


class MarketplaceClient:
    """
    Thin REST client for the marketplace API. Every call returns the decoded
    JSON body; failures raise ApiClientError with the server's message.
    """

    def __init__(
        self,
        base_url: str,
        token: TokenSource = None,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = MAX_RETRIES,
        backoff: float = 0.6,
    ):
        self.base_url = base_url.rstrip("/")
        self._token = token
        self.session = session or requests.Session()
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.backoff = backoff

    # ---------------------------------------------------------
    # TRANSPORT
    # ---------------------------------------------------------
    def _headers(self, auth: bool) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if auth and self._token:
            token = self._token() if callable(self._token) else self._token
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _sleep(self, attempt: int) -> None:
        if self.backoff > 0:
            time.sleep(self.backoff * (2 ** (attempt - 1)))

    def request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None,
                params: Optional[Dict[str, Any]] = None, auth: bool = True) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        last_err: Optional[str] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                resp = self.session.request(
                    method, url, json=json, params=params,
                    headers=self._headers(auth), timeout=self.timeout,
                )
            except (requests.Timeout, requests.ConnectionError) as e:
                last_err = f"Network error on {url}: {e}"
                logger.warning("%s (attempt %d/%d)", last_err, attempt, self.max_retries)
                if attempt < self.max_retries:
                    self._sleep(attempt)
                    continue
                raise ApiClientError(None, last_err)

            if resp.status_code in RETRY_STATUS and attempt < self.max_retries:
                logger.warning("Upstream %s on %s (attempt %d/%d)", resp.status_code, url, attempt, self.max_retries)
                self._sleep(attempt)
                continue

            data = _safe_json(resp)
            if resp.status_code >= 400:
                data = data or {}
                msg = data.get("message") or data.get("detail") or "Request failed"
                raise ApiClientError(resp.status_code, msg, data)
            if data is None:
                snippet = (resp.text or "").strip().replace("\n", " ")[:240]
                raise ApiClientError(resp.status_code, f"Non-JSON response on {url}: {snippet}")
            return data

        raise ApiClientError(None, last_err or f"No response from {url}")

    # ---------------------------------------------------------
    # AUTH
    # ---------------------------------------------------------
    def register(self, profile: Dict[str, Any]) -> Dict[str, Any]:
        return self.request("POST", "/api/auth/register", json=profile)["user"]

    def login(self) -> Dict[str, Any]:
        return self.request("POST", "/api/auth/login")["user"]

    def me(self) -> Dict[str, Any]:
        return self.request("GET", "/api/users/me")["user"]

    # ---------------------------------------------------------
    # DISTRIBUTOR
    # ---------------------------------------------------------
    def list_products(self) -> List[Dict[str, Any]]:
        return self.request("GET", "/api/distributor/products")["items"]

    def create_product(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self.request("POST", "/api/distributor/products", json=fields)["product"]

    def update_product(self, product_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self.request("PUT", f"/api/distributor/products/{product_id}", json=fields)["product"]

    def delete_product(self, product_id: str) -> bool:
        return bool(self.request("DELETE", f"/api/distributor/products/{product_id}").get("ok"))

    def distributor_orders(self) -> List[Dict[str, Any]]:
        return self.request("GET", "/api/distributor/orders")["items"]

    def update_order_status(self, order_id: str, status: str) -> Dict[str, Any]:
        return self.request("PATCH", f"/api/distributor/orders/{order_id}", json={"status": status})["order"]

    def distributor_deliveries(self) -> List[Dict[str, Any]]:
        return self.request("GET", "/api/distributor/deliveries")["items"]

    def create_delivery(self, order_id: str, **extra: Any) -> Dict[str, Any]:
        body = {"orderId": order_id, **extra}
        return self.request("POST", "/api/distributor/deliveries", json=body)["delivery"]

    def override_delivery_status(self, assignment_id: str, status: str) -> Dict[str, Any]:
        path = f"/api/distributor/deliveries/{assignment_id}"
        return self.request("PATCH", path, json={"status": status})["delivery"]

    # ---------------------------------------------------------
    # VENDOR
    # ---------------------------------------------------------
    def distributors(self) -> List[Dict[str, Any]]:
        return self.request("GET", "/api/vendor/distributors")["items"]

    def browse_products(self, distributor_id: Optional[str] = None, **filters: Any) -> List[Dict[str, Any]]:
        path = f"/api/vendor/products/{distributor_id}" if distributor_id else "/api/vendor/products"
        params = {k: v for k, v in filters.items() if v is not None} or None
        return self.request("GET", path, params=params)["items"]

    def vendor_orders(self) -> List[Dict[str, Any]]:
        return self.request("GET", "/api/vendor/orders")["items"]

    def place_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.request("POST", "/api/vendor/orders", json=payload)["order"]

    def profile(self) -> Dict[str, Any]:
        return self.request("GET", "/api/vendor/profile")["user"]

    def update_profile(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self.request("PUT", "/api/vendor/profile", json=fields)["user"]

    # ---------------------------------------------------------
    # AGENT
    # ---------------------------------------------------------
    def available_deliveries(self) -> List[Dict[str, Any]]:
        return self.request("GET", "/api/agent/available-deliveries")["items"]

    def my_deliveries(self) -> List[Dict[str, Any]]:
        return self.request("GET", "/api/agent/my-deliveries")["items"]

    def accept_delivery(self, assignment_id: str) -> Dict[str, Any]:
        return self.request("POST", f"/api/agent/accept-delivery/{assignment_id}")["delivery"]

    def update_delivery_status(self, assignment_id: str, status: str) -> Dict[str, Any]:
        path = f"/api/agent/update-status/{assignment_id}"
        return self.request("PUT", path, json={"status": status})["delivery"]

    def update_location(self, assignment_id: str, latitude: float, longitude: float) -> Dict[str, Any]:
        path = f"/api/agent/update-location/{assignment_id}"
        return self.request("PUT", path, json={"latitude": latitude, "longitude": longitude})["delivery"]

    def complete_delivery(self, assignment_id: str, payment_status: str,
                          notes: Optional[str] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {"paymentStatus": payment_status}
        if notes is not None:
            body["notes"] = notes
        return self.request("POST", f"/api/agent/complete-delivery/{assignment_id}", json=body)["delivery"]

    # ---------------------------------------------------------
    # PUBLIC
    # ---------------------------------------------------------
    def tracking(self, assignment_id: str) -> Dict[str, Any]:
        return self.request("GET", f"/api/tracking/{assignment_id}", auth=False)["tracking"]
