"""OAuth 1.0a three-legged flow manager.

Drives one flow through its stages:

    IDLE -> AWAITING_TEMPORARY_CREDENTIALS -> AWAITING_USER_AUTHORIZATION
         -> AWAITING_ACCESS_TOKEN -> AUTHORIZED

Requests are signed and handed to the HttpClient as background tasks.
Their completions, together with verifier captures from the callback
listener, are pushed onto one queue and applied by a single consumer task,
so FlowState is only ever mutated from that task or from ``dispatch``.

Every accepted dispatch gets a request id. Only the newest request is
tracked; a completion for an older one is reported as superseded and
leaves the state untouched.
"""

import asyncio
import dataclasses
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Set, Tuple, Union
from uuid import UUID, uuid4

import httpx

from oauth1flow.core.config import Settings, SignatureMethod, settings as default_settings
from oauth1flow.core.events import (
    RequestReadyEvent,
    RequestSupersededEvent,
    TokenReceivedEvent,
    VerificationReceivedEvent,
)
from oauth1flow.core.exceptions import ListenError, OAuth1FlowError, SigningError
from oauth1flow.core.logging import ContextualLogger, logger as root_logger
from oauth1flow.core.protocols import EventBus, ExternalBrowser, HttpClient, Signer
from oauth1flow.domains.oauth1.callback_listener import CallbackListener
from oauth1flow.domains.oauth1.protocols import CallbackListenerProtocol
from oauth1flow.domains.oauth1.response_parser import encode_form_body, parse_response_body
from oauth1flow.domains.oauth1.types import (
    OAUTH_TOKEN,
    ErrorKind,
    FlowStage,
    FlowState,
    InFlightRequest,
    RequestDescriptor,
    RequestKind,
    RequestOutcome,
    ResponseMap,
    TokenCredentials,
    TransportError,
    TransportResponse,
    is_valid_endpoint,
)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

TOKEN_KINDS = frozenset({RequestKind.TEMPORARY_CREDENTIALS, RequestKind.ACCESS_TOKEN})

BodyParameters = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


def classify_transport_error(error: TransportError) -> ErrorKind:
    """Map an HttpClient outcome onto the manager's error classification."""
    if error == TransportError.NONE:
        return ErrorKind.NO_ERROR
    if error in (TransportError.AUTHENTICATION_REQUIRED, TransportError.CONTENT_ACCESS_DENIED):
        return ErrorKind.REQUEST_UNAUTHORIZED
    return ErrorKind.NETWORK_ERROR


@dataclass(frozen=True)
class _Completion:
    request: InFlightRequest
    response: TransportResponse


@dataclass(frozen=True)
class _Verification:
    params: ResponseMap


class OAuth1FlowManager:
    """Runs a single OAuth 1.0a flow against one provider.

    A manager is bound to the event loop it is first used on. All
    notifications are published on the event bus with this manager's
    ``flow_id``.
    """

    def __init__(
        self,
        *,
        signer: Signer,
        http_client: HttpClient,
        browser: ExternalBrowser,
        event_bus: EventBus,
        callback_listener: Optional[CallbackListenerProtocol] = None,
        settings: Optional[Settings] = None,
        logger: Optional[ContextualLogger] = None,
        auto_authorize: Optional[bool] = None,
        owns_http_client: bool = False,
        flow_id: Optional[UUID] = None,
    ) -> None:
        """Initialize the manager with its collaborators.

        Args:
            signer: Produces the Authorization header for a descriptor.
            http_client: Sends the signed POST requests.
            browser: Opens the authorization URL for the resource owner.
            event_bus: Receives every flow notification.
            callback_listener: Loopback listener for the verifier. Created on
                first use of auto-authorization when not given.
            settings: Configuration; defaults to the module settings.
            logger: Base logger; flow dimensions are added to it.
            auto_authorize: Start the listener and register its URL as the
                callback for temporary-credential requests.
            owns_http_client: Close ``http_client`` in ``aclose``.
            flow_id: Identifier carried by every event; random by default.
        """
        self._settings = settings or default_settings
        self._signer = signer
        self._http_client = http_client
        self._browser = browser
        self._event_bus = event_bus
        self._owns_http_client = owns_http_client

        self.flow_id = flow_id or uuid4()
        self._logger = (logger or root_logger).with_context(flow_id=str(self.flow_id))

        if auto_authorize is None:
            auto_authorize = self._settings.AUTO_AUTHORIZE
        self._state = FlowState(auto_authorize=auto_authorize)

        self._listener = callback_listener
        if self._listener is not None:
            self._listener.set_verification_handler(self._on_verification_received)

        self._next_request_id = 0
        self._in_flight: Optional[InFlightRequest] = None
        self._queue: Optional["asyncio.Queue[Union[_Completion, _Verification]]"] = None
        self._consumer: Optional[asyncio.Task] = None
        self._transports: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_temporary_token(self) -> bool:
        """True once a temporary token pair was received for the current flow."""
        return self._state.has_temporary_token

    def is_verified(self) -> bool:
        """True once a redirect carrying a matching verifier was captured."""
        return self._state.is_verified

    def is_authorized(self) -> bool:
        """True once an access token pair was received."""
        return self._state.is_authorized

    def last_error(self) -> ErrorKind:
        """Most recent error; NO_ERROR after a successful response."""
        return self._state.last_error

    @property
    def stage(self) -> FlowStage:
        """Where the flow currently stands."""
        return self._state.stage

    @property
    def state(self) -> FlowState:
        """Snapshot of the flow state; mutating it has no effect."""
        return dataclasses.replace(self._state)

    @property
    def temporary_credentials(self) -> Optional[TokenCredentials]:
        """Temporary token pair, or None before it arrived."""
        if not self._state.has_temporary_token:
            return None
        return TokenCredentials(self._state.temporary_token, self._state.temporary_token_secret)

    @property
    def access_credentials(self) -> Optional[TokenCredentials]:
        """Access token pair, or None until the flow is authorized."""
        if not self._state.is_authorized:
            return None
        return TokenCredentials(self._state.access_token, self._state.access_token_secret)

    @property
    def verifier(self) -> str:
        """Captured oauth_verifier; empty until verified."""
        return self._state.verifier

    @property
    def auto_authorize(self) -> bool:
        """Whether temporary-credential requests bind the listener as their callback."""
        return self._state.auto_authorize

    @auto_authorize.setter
    def auto_authorize(self, enabled: bool) -> None:
        self._state.auto_authorize = enabled

    @property
    def callback_listener(self) -> Optional[CallbackListenerProtocol]:
        return self._listener

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _fail(self, error: ErrorKind, message: str) -> None:
        self._state.last_error = error
        self._logger.warning(f"Request rejected ({error.value}): {message}")

    def _ensure_listener(self) -> CallbackListenerProtocol:
        if self._listener is None:
            self._listener = CallbackListener(
                bind_host=self._settings.CALLBACK_BIND_HOST,
                url_host=self._settings.CALLBACK_URL_HOST,
                timeout=self._settings.CALLBACK_TIMEOUT_SECONDS,
            )
            self._listener.set_verification_handler(self._on_verification_received)
        return self._listener

    def _ensure_consumer(self) -> "asyncio.Queue[Union[_Completion, _Verification]]":
        if self._queue is None:
            self._queue = asyncio.Queue()
        if self._consumer is None or self._consumer.done():
            self._consumer = asyncio.create_task(self._consume())
        return self._queue

    async def dispatch(
        self, descriptor: Optional[RequestDescriptor]
    ) -> Optional["asyncio.Future[RequestOutcome]"]:
        """Sign ``descriptor`` and send it in the background.

        Synchronous failures record ``last_error`` and return None without
        touching anything else in the flow state.

        Returns:
            Future resolved with the RequestOutcome once the response has
            been applied and its events published, or None if rejected.
        """
        if descriptor is None or not isinstance(descriptor, RequestDescriptor):
            self._fail(ErrorKind.REQUEST_ERROR, "no request descriptor given")
            return None
        if not descriptor.has_valid_endpoint():
            self._fail(
                ErrorKind.REQUEST_ENDPOINT_ERROR, f"invalid endpoint {descriptor.endpoint!r}"
            )
            return None
        missing = descriptor.validation_errors()
        if missing:
            self._fail(ErrorKind.REQUEST_VALIDATION_ERROR, f"missing {', '.join(missing)}")
            return None

        is_temporary = descriptor.kind == RequestKind.TEMPORARY_CREDENTIALS
        started_listener = None
        if is_temporary and self._state.auto_authorize:
            listener = self._ensure_listener()
            if not listener.is_listening:
                started_listener = listener
            try:
                await listener.start()
            except ListenError as e:
                self._fail(ErrorKind.LISTEN_ERROR, e.message)
                return None
            descriptor = descriptor.with_callback_url(listener.callback_url)

        try:
            authorization = self._signer.sign(descriptor)
        except SigningError as e:
            self._fail(ErrorKind.REQUEST_VALIDATION_ERROR, e.message)
            # release a port bound by this call
            if started_listener is not None:
                await started_listener.stop()
            return None

        if is_temporary:
            self._state.reset()
            self._state.consumer_key = descriptor.consumer_key
            self._state.consumer_secret = descriptor.consumer_secret
            self._state.callback_url = descriptor.callback_url
            self._state.signature_method = descriptor.signature_method
            self._state.stage = FlowStage.AWAITING_TEMPORARY_CREDENTIALS
        elif descriptor.kind == RequestKind.ACCESS_TOKEN:
            self._state.stage = FlowStage.AWAITING_ACCESS_TOKEN

        self._next_request_id += 1
        request_id = self._next_request_id
        if self._in_flight is not None:
            self._logger.debug(
                f"Request {self._in_flight.request_id} replaced by request {request_id}"
            )

        queue = self._ensure_consumer()
        request = InFlightRequest(
            request_id=request_id,
            descriptor=descriptor,
            future=asyncio.get_running_loop().create_future(),
        )
        self._in_flight = request
        self._state.current_kind = descriptor.kind
        self._state.current_request_id = request_id

        headers = {"Authorization": authorization, "Content-Type": FORM_CONTENT_TYPE}
        body = encode_form_body(descriptor.body_parameters)
        task = asyncio.create_task(self._transmit(queue, request, headers, body))
        self._transports.add(task)
        task.add_done_callback(self._transports.discard)

        self._logger.info(
            f"Dispatched {descriptor.kind.value} request {request_id} to {descriptor.endpoint}"
        )
        return request.future

    async def _transmit(
        self,
        queue: "asyncio.Queue[Union[_Completion, _Verification]]",
        request: InFlightRequest,
        headers: Mapping[str, str],
        body: bytes,
    ) -> None:
        try:
            response = await self._http_client.post(request.descriptor.endpoint, headers, body)
        except asyncio.CancelledError:
            request.future.cancel()
            raise
        except Exception as e:
            self._logger.error(f"HTTP client raised for request {request.request_id}: {e}")
            response = TransportResponse(TransportError.UNKNOWN)
        await queue.put(_Completion(request, response))

    # ------------------------------------------------------------------
    # Consumer
    # ------------------------------------------------------------------

    async def _consume(self) -> None:
        queue = self._queue
        while True:
            item = await queue.get()
            try:
                if isinstance(item, _Completion):
                    await self._apply_completion(item.request, item.response)
                else:
                    await self._apply_verification(item.params)
            except Exception as e:
                self._logger.error(f"Failed to apply flow update: {e}", exc_info=True)
                if isinstance(item, _Completion) and not item.request.future.done():
                    item.request.future.set_exception(e)
            finally:
                queue.task_done()

    async def _apply_completion(
        self, request: InFlightRequest, response: TransportResponse
    ) -> None:
        kind = request.descriptor.kind
        error = classify_transport_error(response.transport_error)
        log = self._logger.with_context(request_id=request.request_id)

        if self._in_flight is None or self._in_flight.request_id != request.request_id:
            log.warning(f"Discarding superseded {kind.value} response")
            await self._event_bus.publish(
                RequestSupersededEvent(
                    flow_id=self.flow_id, request_id=request.request_id, kind=kind
                )
            )
            _resolve(request, RequestOutcome(request.request_id, kind, error, superseded=True))
            return
        self._in_flight = None

        if error != ErrorKind.NO_ERROR:
            params = ResponseMap()
            log.warning(
                f"{kind.value} request failed: {response.transport_error.value} "
                f"(status {response.status_code})"
            )
            self._state.last_error = error
            if kind in TOKEN_KINDS:
                self._state.stage = FlowStage.ERROR
            token = token_secret = ""
            emit_token = True
        else:
            params = parse_response_body(response.body)
            fields = params.oauth_fields()
            token, token_secret = fields.oauth_token, fields.oauth_token_secret
            error = self._store_tokens(kind, token, token_secret)
            emit_token = kind in TOKEN_KINDS
            if error == ErrorKind.NO_ERROR:
                log.info(f"{kind.value} request completed")
            else:
                log.warning(f"{kind.value} response carried no usable token pair")

        await self._event_bus.publish(
            RequestReadyEvent(
                flow_id=self.flow_id,
                request_id=request.request_id,
                kind=kind,
                error=error,
                response=params,
            )
        )
        if emit_token:
            await self._event_bus.publish(
                TokenReceivedEvent(
                    flow_id=self.flow_id,
                    request_id=request.request_id,
                    kind=kind,
                    token=token,
                    token_secret=token_secret,
                )
            )
        _resolve(request, RequestOutcome(request.request_id, kind, error, params))

    def _store_tokens(self, kind: RequestKind, token: str, token_secret: str) -> ErrorKind:
        """Apply a successful response to the state and return its classification."""
        error = ErrorKind.NO_ERROR
        if kind == RequestKind.TEMPORARY_CREDENTIALS:
            if self._state.set_temporary_credentials(token, token_secret):
                self._state.stage = FlowStage.AWAITING_USER_AUTHORIZATION
            else:
                error = ErrorKind.REQUEST_UNAUTHORIZED
        elif kind == RequestKind.ACCESS_TOKEN:
            if self._state.set_access_credentials(token, token_secret):
                self._state.stage = FlowStage.AUTHORIZED
            else:
                error = ErrorKind.REQUEST_UNAUTHORIZED

        if error != ErrorKind.NO_ERROR:
            self._state.stage = FlowStage.ERROR
        self._state.last_error = error
        return error

    async def _on_verification_received(self, params: ResponseMap) -> None:
        await self._ensure_consumer().put(_Verification(params))

    async def _apply_verification(self, params: ResponseMap) -> None:
        fields = params.oauth_fields()
        if not fields.oauth_verifier:
            self._logger.warning("Authorization redirect carried no oauth_verifier")
        elif not self._state.has_temporary_token:
            self._logger.warning("Authorization redirect arrived without temporary credentials")
        elif fields.oauth_token and fields.oauth_token != self._state.temporary_token:
            self._logger.warning("Authorization redirect oauth_token does not match this flow")
        else:
            self._state.verifier = fields.oauth_verifier
            self._state.is_verified = True
            self._logger.info("Authorization verifier received")

        await self._event_bus.publish(
            VerificationReceivedEvent(flow_id=self.flow_id, params=params)
        )

    # ------------------------------------------------------------------
    # Flow steps
    # ------------------------------------------------------------------

    def get_user_authorization(self, endpoint: str) -> Optional[str]:
        """Open the provider's authorization page in the browser.

        The temporary token is set as the only query parameter of
        ``endpoint``.

        Returns:
            The URL that was opened, or None if no temporary token is held or
            the endpoint is invalid.
        """
        if not self._state.has_temporary_token:
            self._fail(ErrorKind.REQUEST_UNAUTHORIZED, "no temporary credentials to authorize")
            return None
        if not is_valid_endpoint(endpoint):
            self._fail(ErrorKind.REQUEST_ENDPOINT_ERROR, f"invalid endpoint {endpoint!r}")
            return None

        url = str(httpx.URL(endpoint).copy_with(params={OAUTH_TOKEN: self._state.temporary_token}))
        listening = self._listener is not None and self._listener.is_listening
        if self._state.auto_authorize and not listening:
            self._logger.warning(
                "Auto-authorization is on but the callback listener is not running"
            )
        self._logger.info("Opening authorization page in the browser")
        self._browser.open(url)
        return url

    async def request_access_token(
        self, endpoint: str, verifier: Optional[str] = None
    ) -> Optional["asyncio.Future[RequestOutcome]"]:
        """Exchange the temporary credentials and verifier for an access token.

        Args:
            endpoint: The provider's access-token URL.
            verifier: Overrides the verifier captured by the callback listener.
        """
        if not self._state.has_temporary_token:
            self._fail(ErrorKind.REQUEST_UNAUTHORIZED, "no temporary credentials to exchange")
            return None

        descriptor = RequestDescriptor(
            endpoint=endpoint,
            kind=RequestKind.ACCESS_TOKEN,
            consumer_key=self._state.consumer_key,
            consumer_secret=self._state.consumer_secret,
            token=self._state.temporary_token,
            token_secret=self._state.temporary_token_secret,
            verifier=verifier or self._state.verifier,
            signature_method=self._state.signature_method,
        )
        return await self.dispatch(descriptor)

    async def send_authorized_request(
        self, endpoint: str, params: Optional[BodyParameters] = None
    ) -> Optional["asyncio.Future[RequestOutcome]"]:
        """POST ``params`` as a form body signed with the access token."""
        if not self._state.is_authorized:
            self._fail(ErrorKind.REQUEST_UNAUTHORIZED, "flow is not authorized")
            return None
        if not is_valid_endpoint(endpoint):
            self._fail(ErrorKind.REQUEST_ENDPOINT_ERROR, f"invalid endpoint {endpoint!r}")
            return None

        if params is None:
            pairs: Tuple[Tuple[str, str], ...] = ()
        elif isinstance(params, Mapping):
            pairs = tuple((str(k), str(v)) for k, v in params.items())
        else:
            pairs = tuple((str(k), str(v)) for k, v in params)

        descriptor = RequestDescriptor(
            endpoint=endpoint,
            kind=RequestKind.AUTHORIZED_REQUEST,
            consumer_key=self._state.consumer_key,
            consumer_secret=self._state.consumer_secret,
            token=self._state.access_token,
            token_secret=self._state.access_token_secret,
            signature_method=self._state.signature_method,
            body_parameters=pairs,
        )
        return await self.dispatch(descriptor)

    async def wait_for_verification(self, timeout: Optional[float] = None) -> ResponseMap:
        """Wait for the authorization redirect and apply it to the state.

        Raises:
            ListenError: If no callback listener was ever started.
            VerificationTimeout: If no redirect arrived in time.
        """
        if self._listener is None:
            raise ListenError(self._settings.CALLBACK_BIND_HOST, "Callback listener is not running")
        params = await self._listener.wait_for_verification(timeout)
        if self._queue is not None:
            await self._queue.join()
        return params

    async def run_three_legged_flow(
        self,
        *,
        request_token_url: str,
        authorize_url: str,
        access_token_url: str,
        consumer_key: str,
        consumer_secret: str,
        signature_method: Optional[SignatureMethod] = None,
        timeout: Optional[float] = None,
    ) -> TokenCredentials:
        """Run the whole handshake with auto-authorization and return the access pair.

        The callback listener is stopped when the flow ends, whatever the result.

        Raises:
            OAuth1FlowError: If any step fails; carries the ErrorKind.
            VerificationTimeout: If the resource owner never completes authorization.
        """
        previous_auto = self._state.auto_authorize
        self._state.auto_authorize = True
        try:
            descriptor = RequestDescriptor(
                endpoint=request_token_url,
                kind=RequestKind.TEMPORARY_CREDENTIALS,
                consumer_key=consumer_key,
                consumer_secret=consumer_secret,
                signature_method=signature_method or self._settings.SIGNATURE_METHOD,
            )
            await self._require(await self.dispatch(descriptor))

            if self.get_user_authorization(authorize_url) is None:
                raise OAuth1FlowError(self._state.last_error)

            await self.wait_for_verification(timeout)
            if not self._state.is_verified:
                raise OAuth1FlowError(
                    ErrorKind.REQUEST_UNAUTHORIZED, "Authorization was not granted"
                )

            await self._require(await self.request_access_token(access_token_url))
            return self.access_credentials
        finally:
            self._state.auto_authorize = previous_auto
            if self._listener is not None:
                await self._listener.stop()

    async def _require(
        self, future: Optional["asyncio.Future[RequestOutcome]"]
    ) -> RequestOutcome:
        if future is None:
            raise OAuth1FlowError(self._state.last_error)
        outcome = await future
        if outcome.superseded:
            raise OAuth1FlowError(outcome.error, "Request was superseded by a newer request")
        if outcome.error != ErrorKind.NO_ERROR:
            raise OAuth1FlowError(outcome.error)
        return outcome

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def join(self) -> None:
        """Wait until every accepted dispatch has published its notifications."""
        while self._transports:
            await asyncio.gather(*list(self._transports), return_exceptions=True)
        if self._queue is not None:
            await self._queue.join()

    async def aclose(self) -> None:
        """Cancel outstanding work and stop the listener."""
        for task in list(self._transports):
            task.cancel()
        if self._transports:
            await asyncio.gather(*list(self._transports), return_exceptions=True)

        if self._in_flight is not None and not self._in_flight.future.done():
            self._in_flight.future.cancel()
        self._in_flight = None

        if self._consumer is not None:
            self._consumer.cancel()
            await asyncio.gather(self._consumer, return_exceptions=True)
            self._consumer = None
        self._queue = None

        if self._listener is not None:
            await self._listener.stop()
        if self._owns_http_client:
            await self._http_client.aclose()
        self._logger.debug("Flow manager closed")

    async def __aenter__(self) -> "OAuth1FlowManager":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


def _resolve(request: InFlightRequest, outcome: RequestOutcome) -> None:
    if not request.future.done():
        request.future.set_result(outcome)
