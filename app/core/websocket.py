"""
WebSocket manager for real-time chat updates.
Handles Socket.IO connections, chat rooms, and event broadcasting.
"""
import logging
from typing import Dict, Set, Optional, Any

import socketio

from app.config import settings
from app.core.database import AsyncSessionLocal

logger = logging.getLogger(__name__)


def room_for(chat_id: str) -> str:
    """Socket.IO room name for a chat."""
    return f"chat:{chat_id}"


def _chat_id_from(data: Any) -> Optional[str]:
    """
    Extract the chat id from a client payload.

    Clients send either the bare id or an object with ``chatId`` / ``chat_id``.
    """
    if isinstance(data, str):
        return data or None
    if isinstance(data, dict):
        chat_id = data.get("chatId") or data.get("chat_id")
        if isinstance(chat_id, str) and chat_id:
            return chat_id
    return None


def _token_from_handshake(environ: Optional[dict], auth: Any) -> Optional[str]:
    """Bearer token from the handshake ``auth`` object or the Authorization header."""
    if isinstance(auth, dict) and auth.get("token"):
        return auth["token"]

    header = (environ or {}).get("HTTP_AUTHORIZATION")
    if header:
        parts = header.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]
    return None


class ConnectionManager:
    """
    WebSocket connection manager using Socket.IO.

    The only process-local state in the server: which connection belongs to
    which user and which connections joined which chat room. Other components
    go through the broadcast_* methods and never touch the tables directly.
    """

    def __init__(self, session_factory=AsyncSessionLocal):
        """Initialize the connection manager."""
        self.session_factory = session_factory

        self.sio = socketio.AsyncServer(
            async_mode='asgi',
            cors_allowed_origins=settings.get_allowed_origins_list(),
            # Socket.IO logs every packet; the application logger covers what matters
            logger=False,
            engineio_logger=False,
            ping_timeout=settings.ws_heartbeat_interval,
            ping_interval=max(settings.ws_heartbeat_interval // 2, 1),
        )

        # Track connections: {sid: user_id}
        self.connections: Dict[str, str] = {}

        # Track user sessions: {user_id: set of sids}
        self.user_sessions: Dict[str, Set[str]] = {}

        # Track chat rooms: {chat_id: set of sids}
        self.chat_rooms: Dict[str, Set[str]] = {}

        self._setup_handlers()

    def _setup_handlers(self):
        """Setup Socket.IO event handlers."""

        @self.sio.event
        async def connect(sid, environ, auth=None):
            """
            Authenticate the handshake.

            The token comes from ``auth.token`` or an ``Authorization: Bearer``
            header. Any failure refuses the connection with ``Unauthorized``.
            """
            token = _token_from_handshake(environ, auth)
            if not token:
                logger.warning(f"Connection rejected - no token: {sid}")
                raise socketio.exceptions.ConnectionRefusedError('Unauthorized')

            from app.core.exceptions import UnauthenticatedError
            from app.core.security import decode_token, get_subject
            from app.repositories.user_repo import UserRepository

            try:
                user_id = get_subject(decode_token(token))
            except UnauthenticatedError as e:
                logger.warning(f"Connection rejected - {e.details}: {sid}")
                raise socketio.exceptions.ConnectionRefusedError('Unauthorized')

            async with self.session_factory() as db:
                user_exists = await UserRepository(db).exists(user_id)

            if not user_exists:
                logger.warning(f"Connection rejected - unknown user {user_id}: {sid}")
                raise socketio.exceptions.ConnectionRefusedError('Unauthorized')

            self.connections[sid] = user_id
            self.user_sessions.setdefault(user_id, set()).add(sid)
            logger.info(f"Client connected: {sid} (user: {user_id})")
            return True

        @self.sio.event
        async def disconnect(sid, reason=None):
            """Forget the connection and every room it joined. Nothing is broadcast."""
            user_id = self.connections.pop(sid, None)

            if user_id and user_id in self.user_sessions:
                self.user_sessions[user_id].discard(sid)
                if not self.user_sessions[user_id]:
                    del self.user_sessions[user_id]

            for chat_id in list(self.chat_rooms):
                self._untrack(chat_id, sid)

            logger.info(f"Client disconnected: {sid} (user: {user_id})")

        @self.sio.on('chat:join')
        async def join_chat(sid, data):
            """
            Join a chat room after checking the user participates in the chat.

            Expected data: chat id string or {'chatId': '...'}
            """
            user_id = self.connections.get(sid)
            if not user_id:
                await self.sio.emit('error', {'message': 'Unauthorized', 'code': 401}, to=sid)
                return

            chat_id = _chat_id_from(data)
            if not chat_id:
                await self.sio.emit('error', {'message': 'chatId is required', 'code': 400}, to=sid)
                return

            from app.core.exceptions import AppException
            from app.services.membership_service import ChatMembershipResolver

            try:
                async with self.session_factory() as db:
                    await ChatMembershipResolver(db).require_participant(chat_id, user_id)
            except AppException as e:
                logger.warning(f"Join refused for user {user_id} in chat {chat_id}: {e.error}")
                await self.sio.emit('error', {'message': e.error, 'code': e.status_code}, to=sid)
                return

            await self.sio.enter_room(sid, room_for(chat_id))
            self.chat_rooms.setdefault(chat_id, set()).add(sid)
            logger.info(f"User {user_id} joined chat {chat_id} ({sid})")

            await self.sio.emit('joined', {'chatId': chat_id}, to=sid)

        @self.sio.on('chat:leave')
        async def leave_chat(sid, data):
            """Leave a chat room."""
            chat_id = _chat_id_from(data)
            if not chat_id:
                return

            await self.sio.leave_room(sid, room_for(chat_id))
            self._untrack(chat_id, sid)

            await self.sio.emit('left', {'chatId': chat_id}, to=sid)

        @self.sio.on('typing:start')
        async def typing_start(sid, data):
            await self._relay_typing('typing:start', sid, data)

        @self.sio.on('typing:stop')
        async def typing_stop(sid, data):
            await self._relay_typing('typing:stop', sid, data)

    def _untrack(self, chat_id: str, sid: str):
        sids = self.chat_rooms.get(chat_id)
        if sids is None:
            return
        sids.discard(sid)
        if not sids:
            del self.chat_rooms[chat_id]

    async def _relay_typing(self, event: str, sid: str, data: Any):
        """
        Forward a typing signal to the other connections in the room.

        Fire-and-forget: only connections that joined the room may signal, and
        nothing is persisted or retried.
        """
        user_id = self.connections.get(sid)
        chat_id = _chat_id_from(data)
        if not user_id or not chat_id or sid not in self.chat_rooms.get(chat_id, ()):
            return

        try:
            await self.sio.emit(
                event,
                {'chatId': chat_id, 'userId': user_id},
                room=room_for(chat_id),
                skip_sid=sid
            )
        except Exception:
            logger.error(f"Failed to relay {event} in chat {chat_id}", exc_info=True)

    async def _emit_to_chat(self, event: str, data: Dict[str, Any], chat_id: str):
        """
        Emit an event to every connection in a chat room.

        Callers emit only after their write has committed. Delivery is best
        effort: failures are logged and never reach the caller.
        """
        try:
            await self.sio.emit(event, data, room=room_for(chat_id))
            logger.info(f"Broadcast {event} to chat {chat_id}")
        except Exception:
            logger.error(f"Failed to broadcast {event} to chat {chat_id}", exc_info=True)

    async def broadcast_new_message(self, chat_id: str, message_data: Dict[str, Any]):
        """Broadcast a newly created message (send or reply)."""
        await self._emit_to_chat('message:new', message_data, chat_id)

    async def broadcast_message_edited(self, chat_id: str, message_data: Dict[str, Any]):
        """Broadcast the full edited message."""
        await self._emit_to_chat('message:edited', message_data, chat_id)

    async def broadcast_message_deleted(self, chat_id: str, message_id: str):
        """Broadcast a deletion. Only the id goes out, never the content."""
        await self._emit_to_chat('message:deleted', {'id': message_id}, chat_id)

    async def broadcast_message_delivered(self, chat_id: str, message_id: str, user_id: str):
        await self._emit_to_chat(
            'message:delivered',
            {'messageId': message_id, 'userId': user_id},
            chat_id
        )

    async def broadcast_message_seen(
        self,
        chat_id: str,
        user_id: str,
        last_seen_message_id: Optional[str]
    ):
        await self._emit_to_chat(
            'message:seen',
            {'chatId': chat_id, 'userId': user_id, 'lastSeenMessageId': last_seen_message_id},
            chat_id
        )

    def get_stats(self) -> Dict[str, int]:
        """Counters for the websocket health endpoint."""
        return {
            'connections': len(self.connections),
            'users': len(self.user_sessions),
            'rooms': len(self.chat_rooms),
        }

    def reset(self):
        """Drop all tracked connections and rooms (process shutdown)."""
        self.connections.clear()
        self.user_sessions.clear()
        self.chat_rooms.clear()

    def get_asgi_app(self, fastapi_app):
        """
        Get the ASGI app for Socket.IO wrapping FastAPI.

        Socket.IO wraps FastAPI, not the other way around; clients connect to
        ``/socket.io/`` and every other path falls through to FastAPI.
        """
        return socketio.ASGIApp(self.sio, fastapi_app)


# Global connection manager instance
connection_manager = ConnectionManager()
