# clients.py
"""
Async HTTP client for the CloudLink order-management REST service.

RequestPipeline turns a RequestTarget into a fully resolved request,
dispatches it with httpx and decodes the JSON body. CloudLinkClient maps
each CloudLink endpoint onto that pipeline.
"""

import json
import logging
from datetime import datetime
from typing import Any, Optional

import httpx
from pydantic import BaseModel

from schemas import ClientConfig, Feedback, FormValue, RequestOptions, RequestTarget
from utils import format_utc, utc_seconds_ago

logger = logging.getLogger(__name__)

HELLO_WORLD = "Hello World!"


class CloudLinkError(Exception):
    """Base class for CloudLink client failures."""

    pass


class TransportError(CloudLinkError):
    """Raised when the request never completed (DNS, connection, TLS, timeout)."""

    pass


class ParseError(CloudLinkError):
    """Raised when a response body is not the JSON that was expected."""

    def __init__(self, message: str, body: Any):
        super().__init__(message)
        self.body = body


def build_url(host: str, path: str) -> str:
    """Join host and path with exactly one slash between them."""
    return host.rstrip("/") + "/" + path.lstrip("/")


def _form_value(value: FormValue) -> str:
    # numbers and booleans go out the way JSON spells them
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _reject_constant(name: str):
    # NaN and Infinity are not JSON
    raise ValueError(f"invalid JSON constant {name}")


def _to_json(payload: Any) -> str:
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="json")
    return json.dumps(payload)


class RequestPipeline:
    """
    Builds, dispatches and decodes CloudLink requests.

    Every request carries the configured basic-auth credentials and TLS
    policy. Status codes are not inspected: any completed exchange yields
    its body.
    """

    def __init__(
        self,
        config: ClientConfig,
        log: Optional[logging.Logger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.logger = log or logger
        self._transport = transport

    def build_url(self, path: str) -> str:
        return build_url(self.config.host, path)

    def build_request_options(
        self,
        target: RequestTarget,
        extra_fields: Optional[dict[str, FormValue]] = None,
    ) -> RequestOptions:
        """
        Resolve a target into request options.

        Args:
            target: Endpoint path, method and form fields.
            extra_fields: Additional form fields; these override target fields.

        Returns:
            RequestOptions with URL, auth, TLS flag and encoded form data.
        """
        fields = {**target.form, **(extra_fields or {})}
        return RequestOptions(
            method=target.method,
            url=self.build_url(target.path),
            auth=(self.config.username, self.config.password),
            verify_tls=self.config.verify_tls,
            timeout=self.config.timeout,
            data={k: _form_value(v) for k, v in fields.items()},
        )

    async def send_get(self, options: RequestOptions) -> str:
        """Issue a GET request and return the raw response body."""
        return await self._dispatch("GET", options)

    async def send_post(self, options: RequestOptions) -> str:
        """Issue a form-encoded POST request and return the raw response body."""
        return await self._dispatch("POST", options)

    async def send(self, options: RequestOptions) -> str:
        if options.method == "POST":
            return await self.send_post(options)
        return await self.send_get(options)

    async def _dispatch(self, method: str, options: RequestOptions) -> str:
        self.logger.debug("%s %s fields=%s", method, options.url, list(options.data))
        try:
            async with httpx.AsyncClient(
                auth=options.auth,
                verify=options.verify_tls,
                timeout=options.timeout,
                transport=self._transport,
            ) as client:
                if method == "POST":
                    response = await client.post(options.url, data=options.data)
                else:
                    response = await client.get(options.url)
        except (httpx.TransportError, httpx.DecodingError) as e:
            # DecodingError: body bytes could not be undone from their Content-Encoding
            self.logger.error("%s %s failed: %s", method, options.url, e)
            raise TransportError(f"{method} {options.url} failed: {e}") from e

        # body is returned whatever the status; parse_json decides what it is worth
        if response.is_error:
            self.logger.warning(
                "%s %s returned HTTP %d", method, options.url, response.status_code
            )
        return response.text

    def parse_json(self, raw_body: Any) -> Any:
        """
        Strictly decode a JSON body.

        Raises:
            ParseError: If the body is empty, malformed or not text at all.
        """
        try:
            return json.loads(raw_body, parse_constant=_reject_constant)
        except (TypeError, ValueError, RecursionError) as e:
            self.logger.error("Could not parse body as JSON: %r", raw_body)
            raise ParseError(f"could not parse body json: {e}", raw_body) from e


class CloudLinkClient:
    """Client for the CloudLink REST interface."""

    def __init__(
        self,
        config: ClientConfig,
        log: Optional[logging.Logger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.logger = log or logger
        self.pipeline = RequestPipeline(config, self.logger, transport)

    async def _call(
        self,
        path: str,
        method: str = "GET",
        form: Optional[dict[str, FormValue]] = None,
    ) -> str:
        target = RequestTarget(path=path, method=method, form=form or {})
        options = self.pipeline.build_request_options(target)
        return await self.pipeline.send(options)

    async def _call_json(
        self,
        path: str,
        method: str = "GET",
        form: Optional[dict[str, FormValue]] = None,
    ) -> Any:
        body = await self._call(path, method, form)
        return self.pipeline.parse_json(body)

    # Connection

    async def hello_world(self) -> str:
        """Return the literal greeting of the server."""
        return await self._call("helloWorld")

    async def is_online(self) -> bool:
        """Test whether the CloudLink server is online."""
        self.logger.info("/helloWorld - check connection")
        return await self.hello_world() == HELLO_WORLD

    async def report_machine_status(self, status: str) -> Any:
        """
        Update machine status.

        Args:
            status: Machine status, e.g. 'out of order' or 'working'.
        """
        self.logger.info("/reportMachineStatus %s", status)
        return await self._call_json(
            "reportMachineStatus", "POST", {"status": status}
        )

    # Orders

    async def get_orders_by_status(self, status: str) -> Any:
        """
        Return the orders with the given status.

        Args:
            status: pending / in progress / done / delivered / rejected /
                failure / aborted.
        """
        self.logger.info("/getOrdersByStatus %s", status)
        return await self._call_json("getOrdersByStatus", "POST", {"status": status})

    async def get_orders_filtered(self, status: str | list[str]) -> Any:
        """Return orders matching a status filter. Server-side filtering is unreliable."""
        self.logger.info("/getOrdersFiltered %s", status)
        return await self._call_json(
            "getOrdersFiltered", "POST", {"filter": _to_json({"status": status})}
        )

    async def place_order(self, order: dict | BaseModel) -> Any:
        """
        Place an order online.

        Args:
            order: Order details, sent as a JSON string.

        Returns:
            Order status returned by the server.
        """
        self.logger.info("/placeOrder %s", order)
        return await self._call_json("placeOrder", "POST", {"order": _to_json(order)})

    async def update_order_status(self, order_id: int | str, status: str) -> Any:
        """
        Update the status of an order.

        Args:
            order_id: ID of the order.
            status: New order status.
        """
        self.logger.info("/updateOrderStatus %s %s", order_id, status)
        return await self._call_json(
            "updateOrderStatus", "POST", {"id": order_id, "status": status}
        )

    async def update_order(self, order: dict | BaseModel) -> Any:
        """Update an order with the given details."""
        self.logger.info("/updateOrder %s", order)
        return await self._call_json("updateOrder", "POST", {"order": _to_json(order)})

    async def set_barcode(self, order_id: int | str, barcode: int | str) -> Any:
        """Set the barcode for an order."""
        self.logger.info("/setBarcode %s %s", order_id, barcode)
        return await self._call_json(
            "setBarcode", "POST", {"id": order_id, "barcode": barcode}
        )

    async def reload_order_in_jobboard(self, order_id: int | str) -> Any:
        """Touch an order so the job board picks it up again."""
        return await self.update_order(
            {"orderId": order_id, "date": utc_seconds_ago(0)}
        )

    # Orders / Jobboard

    async def get_orders_since(self, timestamp: str | datetime | None = None) -> Any:
        """
        Return all orders placed since the given time.

        Args:
            timestamp: ISO-8601 string or datetime; defaults to one minute ago (UTC).
                Generated timestamps end in "+00:00" rather than "Z"; a string
                argument is sent untouched.
        """
        if timestamp is None:
            timestamp = utc_seconds_ago(60)
        elif isinstance(timestamp, datetime):
            timestamp = format_utc(timestamp)

        self.logger.info("/getOrdersSince %s", timestamp)
        return await self._call_json(
            "getOrdersSince", "POST", {"timestamp": timestamp}
        )

    async def get_orders_updated_since(self, seconds: float = 60) -> Any:
        """
        Return all orders updated recently.

        Args:
            seconds: Lookback window in seconds.
        """
        timestamp = utc_seconds_ago(seconds)
        self.logger.info("/getOrdersUpdatedSince %s", timestamp)
        return await self._call_json(
            "getOrdersUpdatedSince", "POST", {"timestamp": timestamp}
        )

    # Recipes

    async def get_recipes(self) -> Any:
        """Get the list of recipes."""
        self.logger.info("/getRecipes")
        return await self._call_json("getRecipes")

    async def load_default_recipes(self) -> Any:
        """Load the default recipes on the server; returns status and recipes."""
        self.logger.info("/loadDefaultRecipes")
        return await self._call_json("loadDefaultRecipes")

    # Feedback

    async def give_feedback(
        self, order_id: int | str, like: bool, feedback_text: Optional[str]
    ) -> Any:
        """
        Give customer feedback on an order.

        Negative feedback triggers an operator push notification server side.

        Args:
            order_id: ID of the reviewed order.
            like: Positive or negative feedback.
            feedback_text: Free text, None is sent as null.
        """
        feedback = Feedback(productId=order_id, like=like, feedback=feedback_text)
        self.logger.info("/giveFeedback %s %s %s", order_id, like, feedback_text)
        return await self._call_json(
            "giveFeedback", "POST", {"feedback": _to_json(feedback)}
        )

    # Devices

    async def get_registered_devices(self) -> Any:
        """Return the registration IDs of devices for the push service."""
        self.logger.info("/getRegIds - get all registered devices")
        body = await self._call("getRegIds")
        # server sends a JSON string that itself holds the JSON array
        return self.pipeline.parse_json(self.pipeline.parse_json(body))

    async def register_device(self, reg_id: str) -> Any:
        """Register a push device online."""
        self.logger.info("/register - register a push device %s", reg_id)
        return await self._call_json("register", "POST", {"regId": reg_id})
