import logging
from typing import Dict, Optional

from ...errors import SerializationError, StoreError
from ..carrier import SignedCookieCarrier, TokenCarrier
from ..storage import RedisHashStore, create_client
from ..storage.interfaces import HashStore
from .codec import decode
from .context import UnitOfWork
from .options import SessionOptions
from .scheduler import RESERVED_FIELD
from .session import Session
from .tokens import generate_token

logger = logging.getLogger(__name__)


class SessionManager:
    def __init__(self, store: HashStore, carrier: TokenCarrier, options: SessionOptions):
        """
        Initialize session manager.

        Args:
            store: Hash record adapter (shared by all units of work)
            carrier: Token transport (shared by all units of work)
            options: Engine options
        """
        self.store = store
        self.carrier = carrier
        self.options = options

    @classmethod
    def from_options(
        cls,
        options: SessionOptions,
        carrier: Optional[TokenCarrier] = None,
        store: Optional[HashStore] = None,
    ) -> "SessionManager":
        """
        Build a manager with a Redis hash store and a signed cookie carrier.

        Without an explicit ``store``, the Redis client is taken from
        ``options.client`` or created from ``options.uri``.
        """
        if store is None:
            client = options.client if options.client is not None else create_client(options.uri)
            store = RedisHashStore(client)
        if carrier is None:
            carrier = SignedCookieCarrier(options.keys, cookie_name=options.cookie_name)
        return cls(store, carrier, options)

    def key_for(self, token: str) -> str:
        return self.options.key_prefix + token

    async def get_or_create(self, context: UnitOfWork) -> Session:
        """
        Resolve the session for a unit of work.

        Loads the record named by the carried token, or creates a new session
        when there is no token or no record. Later calls in the same unit of
        work return the same object.

        Raises:
            StoreError: If the lookup fails and fallback is disabled
            TokenGenerationError: If a new token cannot be generated
        """
        async with context.lock:
            if context.session is not None:
                return context.session

            session = await self._resolve(context)
            context.session = session
            self.carrier.set_token(context, session.id, session.max_age)
            return session

    async def regenerate(self, context: UnitOfWork) -> Session:
        """Destroy the current session and bind a new one with a fresh token."""
        async with context.lock:
            if context.session is not None:
                self.destroy(context.session)

            session = self._create(context)
            context.session = session
            self.carrier.set_token(context, session.id, session.max_age)
            logger.info(f"Session regenerated ({session.id[:4]}...)")
            return session

    def destroy(self, session: Session) -> None:
        """
        Delete a session record and clear the carried token.

        The delete is started immediately and not awaited; failures are sent
        to the unit of work's error channel.
        """
        context = session._context
        if session.destroyed:
            return
        session._close()
        context.spawn(self.store.delete(session.key))
        self.carrier.clear_token(context)
        if context.session is session:
            context.session = None
        logger.debug(f"Session destroyed ({session.id[:4]}...)")

    async def _resolve(self, context: UnitOfWork) -> Session:
        token = self.carrier.get_token(context)
        if token:
            try:
                record = await self.store.read_all_fields(self.key_for(token))
            except StoreError as e:
                if not self.options.fallback_on_error:
                    raise
                logger.warning(f"Session lookup failed, starting a fresh session: {e}")
                record = None

            if record:
                logger.debug(f"Loaded session ({token[:4]}...) with {len(record)} field(s)")
                return self._load(context, token, record)

            logger.debug(f"No session record for token ({token[:4]}...)")

        return self._create(context)

    def _load(self, context: UnitOfWork, token: str, record: Dict[str, str]) -> Session:
        fields = {}
        max_age = None
        for name, raw in record.items():
            if name == RESERVED_FIELD:
                max_age = self._parse_max_age(raw)
                continue
            try:
                fields[name] = decode(raw, field=name)
            except SerializationError as e:
                logger.warning(f"Ignoring undecodable session field: {e}")

        return Session(self, context, token, fields=fields, max_age=max_age)

    def _create(self, context: UnitOfWork) -> Session:
        token = generate_token(self.options.token_length)
        session = Session(self, context, token, max_age=self.options.max_age, is_new=True)
        # New records are written even if the request never sets a field.
        session._tracker.mark_dirty()
        logger.debug(f"Created session ({token[:4]}...)")
        return session

    def _parse_max_age(self, raw: str) -> Optional[int]:
        try:
            value = int(raw)
        except (TypeError, ValueError):
            logger.warning(f"Invalid stored maxAge {raw!r}, using default")
            return None
        return value if value > 0 else None
