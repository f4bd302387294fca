"""Conversation session: the turn state machine.

Hidden design decisions:
- The order in which a turn moves through gating, interstitial, composing
  and streaming, and which of those can fail
- That every transition is applied synchronously, before any awaiting
- How late results from a discarded turn are recognised and dropped
  (a turn token bumped on every submission and reset)
- How suggestion results are invalidated (a supersession token bumped
  whenever a user or sponsor message is appended)
"""

import asyncio
import logging
from collections.abc import Callable, Sequence

from ..animation import AnimationOutcome, TypingAnimator
from ..completion import CompletionClient, CompletionError, classify_error
from ..config import DEFAULT_CONTEXT_LIMIT, MAX_MESSAGE_LENGTH
from ..context import ContextWindower
from ..memory.models import ChatTranscript, TranscriptEntry
from ..models import ErrorNotice, ToolContext
from ..sponsor import GateDecision, Interstitial, SponsorGate, SponsorRecord
from ..suggestions import SuggestionEngine
from .models import Message, MessageRole, SuggestionSet, TurnState
from .notifications import ChatEvent, Notifier

logger = logging.getLogger(__name__)

SessionListener = Callable[["ConversationSession"], None]
ErrorListener = Callable[[ErrorNotice], None]

INVALID_PROMPT_NOTICE = ErrorNotice(
    kind="INVALID_PROMPT",
    message="This tool does not have a valid prompt configured.",
)

GUEST_LIMIT_NOTICE = ErrorNotice(
    kind="GUEST_LIMIT_REACHED",
    message="Sign in to keep chatting with this tool.",
)

_BUSY_STATES = frozenset({TurnState.GATING, TurnState.COMPOSING, TurnState.STREAMING})


class ConversationSession:
    """One visitor's conversation with one tool.

    A session is created when a chat surface mounts and discarded when it
    unmounts. All mutation happens on the event loop that runs the session;
    listeners are called synchronously after every change.
    """

    def __init__(
        self,
        tool: ToolContext,
        completion_client: CompletionClient,
        sponsor_gate: SponsorGate | None = None,
        *,
        windower: ContextWindower | None = None,
        animator: TypingAnimator | None = None,
        suggestion_engine: SuggestionEngine | None = None,
        notifier: Notifier | None = None,
        context_limit: int = DEFAULT_CONTEXT_LIMIT,
        max_message_length: int = MAX_MESSAGE_LENGTH,
        authenticated: bool = False,
        guest_turn_limit: int | None = None,
    ):
        """Initialize the session with its collaborators.

        Args:
            tool: Tool the conversation is bound to
            completion_client: Produces assistant replies
            sponsor_gate: Decides on sponsor interstitials (None disables them)
            windower: Bounds the history sent with each request
            animator: Reveals replies progressively
            suggestion_engine: Proposes follow-ups (None disables them)
            notifier: Usage and analytics side effects
            context_limit: Turns kept verbatim before summarizing
            max_message_length: Longest accepted submission
            authenticated: Whether the visitor is signed in
            guest_turn_limit: Turns an unauthenticated visitor may send
                (None means unlimited)
        """
        self._tool = tool
        self._client = completion_client
        self._gate = sponsor_gate
        self._windower = windower or ContextWindower(limit=context_limit)
        self._animator = animator or TypingAnimator()
        self._suggestion_engine = suggestion_engine
        self._notifier = notifier or Notifier()
        self._context_limit = context_limit
        self._max_message_length = max_message_length
        self._authenticated = authenticated
        self._guest_turn_limit = guest_turn_limit

        self._messages: list[Message] = []
        self._sequence = 0
        self._state = TurnState.IDLE
        self._pending_user_text: str | None = None
        self._suggestions = SuggestionSet()
        self._supersession = 0
        self._turn_token = 0
        self._user_turn_count = 0
        self._last_error: ErrorNotice | None = None
        self._instant_render = False

        self._turn_task: asyncio.Task | None = None
        self._suggestion_task: asyncio.Task | None = None
        self._interstitial: Interstitial | None = None
        self._placeholder: Message | None = None
        self._sponsor_messages: dict[str, Message] = {}

        self._listeners: list[SessionListener] = []
        self._error_listeners: list[ErrorListener] = []

        self._seed_welcome()

    # ------------------------------------------------------------------
    # Read-only projections
    # ------------------------------------------------------------------

    @property
    def tool(self) -> ToolContext:
        return self._tool

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def turn_state(self) -> TurnState:
        return self._state

    @property
    def pending_user_text(self) -> str | None:
        return self._pending_user_text

    @property
    def suggestions(self) -> SuggestionSet:
        return self._suggestions

    @property
    def user_turn_count(self) -> int:
        return self._user_turn_count

    @property
    def authenticated(self) -> bool:
        return self._authenticated

    @property
    def guest_limit_reached(self) -> bool:
        """Whether an unauthenticated visitor has used up their turns."""
        return (
            not self._authenticated
            and self._guest_turn_limit is not None
            and self._user_turn_count >= self._guest_turn_limit
        )

    @property
    def context_limit(self) -> int:
        return self._context_limit

    @property
    def max_message_length(self) -> int:
        return self._max_message_length

    @property
    def sponsor_messages(self) -> tuple[Message, ...]:
        """Sponsor messages shown in this conversation, including removed ones."""
        return tuple(self._sponsor_messages.values())

    @property
    def last_error(self) -> ErrorNotice | None:
        return self._last_error

    @property
    def interstitial(self) -> Interstitial | None:
        return self._interstitial

    @property
    def is_loading(self) -> bool:
        return self._state == TurnState.COMPOSING

    @property
    def is_bot_typing(self) -> bool:
        return self._state in _BUSY_STATES

    @property
    def is_showing_ad(self) -> bool:
        return self._state == TurnState.INTERSTITIAL

    @property
    def can_send(self) -> bool:
        return self._state == TurnState.IDLE

    @property
    def has_history(self) -> bool:
        """Whether anything beyond the welcome message has been said."""
        return any(m.role == MessageRole.USER for m in self._messages)

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def add_listener(self, callback: SessionListener) -> None:
        self._listeners.append(callback)

    def remove_listener(self, callback: SessionListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def add_error_listener(self, callback: ErrorListener) -> None:
        self._error_listeners.append(callback)

    def _emit(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Session listener failed")

    def _emit_error(self, notice: ErrorNotice) -> None:
        self._last_error = notice
        for listener in list(self._error_listeners):
            try:
                listener(notice)
            except Exception:
                logger.exception("Session error listener failed")

    # ------------------------------------------------------------------
    # Message sequence
    # ------------------------------------------------------------------

    def _seed_welcome(self) -> None:
        text = self._tool.welcome_text()
        self._append(MessageRole.ASSISTANT, content=text, display_content=text)

    def _append(self, role: MessageRole, **fields) -> Message:
        self._sequence += 1
        message = Message(role=role, sequence=self._sequence, **fields)
        self._messages.append(message)
        if role in (MessageRole.USER, MessageRole.SPONSOR):
            self._supersession += 1
            self._suggestions = SuggestionSet(token=self._supersession)
        self._emit()
        return message

    def _remove(self, message: Message | None) -> None:
        if message is None:
            return
        for index, existing in enumerate(self._messages):
            if existing is message:
                del self._messages[index]
                self._emit()
                return

    def _set_state(self, state: TurnState) -> None:
        if state == self._state:
            return
        logger.debug("Tool %s turn state %s -> %s", self._tool.tool_id, self._state.value, state.value)
        self._state = state
        self._emit()

    def _history_before(self, message: Message) -> list[Message]:
        return [m for m in self._messages if m.sequence < message.sequence]

    # ------------------------------------------------------------------
    # Turn lifecycle
    # ------------------------------------------------------------------

    def submit(self, text: str) -> bool:
        """Admit a visitor message at the Idle boundary.

        Returns:
            True if the turn was started; False if the text was empty,
            too long, the tool is misconfigured, a guest has used up
            their turns or a turn is in flight
        """
        if self._state != TurnState.IDLE:
            return False
        if not text or not text.strip():
            return False
        if len(text) > self._max_message_length:
            return False
        if not self._tool.has_valid_prompt:
            self._emit_error(INVALID_PROMPT_NOTICE)
            return False
        if self.guest_limit_reached:
            self._emit_error(GUEST_LIMIT_NOTICE)
            return False

        loop = asyncio.get_running_loop()
        turn_index = sum(1 for m in self._messages if m.role == MessageRole.USER)

        self._turn_token += 1
        token = self._turn_token
        self._discard_suggestion_task()
        self._pending_user_text = None
        self._instant_render = False
        self._last_error = None

        user_message = self._append(MessageRole.USER, content=text, display_content=text)
        self._user_turn_count += 1
        self._set_state(TurnState.GATING)
        logger.info("Tool %s accepted turn %d", self._tool.tool_id, turn_index + 1)

        self._turn_task = loop.create_task(self._run_turn(user_message, turn_index, token))
        return True

    async def send(self, text: str) -> bool:
        """Submit ``text`` and wait for the turn to settle."""
        if not self.submit(text):
            return False
        await self.wait_idle()
        return True

    async def wait_idle(self) -> None:
        """Wait for the in-flight turn and any suggestion request it started."""
        if self._turn_task is not None:
            await asyncio.wait({self._turn_task})
        if self._suggestion_task is not None:
            await asyncio.wait({self._suggestion_task})

    def _is_current(self, token: int) -> bool:
        return token == self._turn_token

    async def _run_turn(self, user_message: Message, turn_index: int, token: int) -> None:
        try:
            decision = await self._evaluate_gate(turn_index)
            if not self._is_current(token):
                return

            text = user_message.content
            if decision.show and decision.ad is not None:
                text = await self._hold_for_sponsor(text, decision.ad, token)
                if text is None:
                    return

            await self._compose(text, user_message, token)
        except asyncio.CancelledError:
            raise
        except CompletionError as e:
            if self._is_current(token):
                self._fail(e)
        except Exception as e:
            if self._is_current(token):
                logger.exception("Unexpected failure in turn for tool %s", self._tool.tool_id)
                self._fail(classify_error(e))

    async def _evaluate_gate(self, turn_index: int) -> GateDecision:
        if self._gate is None:
            return GateDecision(show=False)
        return await self._gate.evaluate(turn_index)

    async def _hold_for_sponsor(self, text: str, ad: SponsorRecord, token: int) -> str | None:
        self._pending_user_text = text
        sponsor_message = self._append(MessageRole.SPONSOR, sponsor=ad)
        self._sponsor_messages[sponsor_message.id] = sponsor_message
        self._set_state(TurnState.INTERSTITIAL)
        self._notifier.track(
            ChatEvent.SPONSOR_IMPRESSION,
            tool_id=self._tool.tool_id,
            sponsor_id=ad.id,
        )

        self._interstitial = self._gate.start_interstitial(
            sponsor_message,
            on_tick=lambda _seconds_left: self._emit(),
        )
        resolved = await self._interstitial.wait()
        if not self._is_current(token) or not resolved:
            return None

        self._interstitial = None
        self._remove(sponsor_message)
        pending, self._pending_user_text = self._pending_user_text, None
        return pending

    async def _compose(self, text: str, user_message: Message, token: int) -> None:
        self._set_state(TurnState.COMPOSING)
        history = self._windower.window(self._history_before(user_message), self._context_limit)
        self._placeholder = self._append(MessageRole.ASSISTANT, is_typing=True)
        self._notifier.track(
            ChatEvent.MESSAGE_SENT,
            tool_id=self._tool.tool_id,
            message_length=len(text),
        )

        reply = await self._client.complete(text, tool=self._tool, history=history)
        if not self._is_current(token):
            return

        placeholder, self._placeholder = self._placeholder, None
        self._set_state(TurnState.STREAMING)
        animation = self._animator.animate(placeholder, reply.content, on_update=self._emit)
        if self._instant_render:
            animation.cancel()

        outcome = await animation.wait()
        if not self._is_current(token):
            return

        if outcome == AnimationOutcome.COMPLETED:
            self._request_suggestions(placeholder)
        self._set_state(TurnState.IDLE)

    def _fail(self, error: CompletionError) -> None:
        """Abort the current turn, leaving the session usable."""
        logger.error("Tool %s turn failed: %s (%s)", self._tool.tool_id, error.code, error.message)

        self._set_state(TurnState.ERRORED)
        self._remove(self._placeholder)
        self._placeholder = None
        if self._interstitial is not None:
            self._interstitial.cancel()
            self._interstitial = None
        for message in [m for m in self._messages if m.role == MessageRole.SPONSOR]:
            if not message.is_sponsor_resolved:
                self._remove(message)
        self._pending_user_text = None

        self._emit_error(error.to_notice())
        self._set_state(TurnState.IDLE)

    def stop(self) -> bool:
        """Stop the typing animation, showing the whole reply at once.

        During Composing the reply is rendered instantly once it arrives.
        The completion request itself is never cancelled.

        Returns:
            True if something was stopped
        """
        if self._state == TurnState.STREAMING:
            stopped = self._animator.cancel_active()
            self._set_state(TurnState.IDLE)
            return stopped
        if self._state == TurnState.COMPOSING:
            self._instant_render = True
            return True
        return False

    def reset(self) -> None:
        """Return to the welcome message, discarding anything in flight."""
        self._turn_token += 1
        self._animator.cancel_active()

        if self._interstitial is not None:
            self._interstitial.cancel()
            self._interstitial = None
        if self._turn_task is not None and not self._turn_task.done():
            self._turn_task.cancel()
        self._turn_task = None
        self._discard_suggestion_task()

        self._pending_user_text = None
        self._instant_render = False
        self._placeholder = None
        self._last_error = None
        self._sponsor_messages.clear()
        self._messages = []
        self._supersession += 1
        self._suggestions = SuggestionSet(token=self._supersession)
        if not self._authenticated:
            self._user_turn_count = 0

        self._state = TurnState.IDLE
        self._seed_welcome()
        logger.info("Tool %s conversation reset", self._tool.tool_id)

    # ------------------------------------------------------------------
    # Suggestions
    # ------------------------------------------------------------------

    def _request_suggestions(self, reply: Message) -> None:
        if self._suggestion_engine is None or not self._tool.suggestions_enabled:
            return
        token = self._supersession
        recent = self._windower.eligible(self._messages)
        self._suggestion_task = asyncio.get_running_loop().create_task(
            self._generate_suggestions(reply.content, recent, token)
        )

    def _discard_suggestion_task(self) -> None:
        if self._suggestion_task is not None and not self._suggestion_task.done():
            self._suggestion_task.cancel()
        self._suggestion_task = None

    async def _generate_suggestions(self, reply_text: str, recent: Sequence, token: int) -> None:
        items = await self._suggestion_engine.generate(self._tool, reply_text, recent)
        if token != self._supersession:
            logger.debug("Dropping superseded suggestions for tool %s", self._tool.tool_id)
            return
        self._suggestions = SuggestionSet(items=tuple(items), token=token)
        self._emit()

    # ------------------------------------------------------------------
    # Side effects
    # ------------------------------------------------------------------

    def open(self) -> None:
        """The chat surface opened."""
        self._notifier.usage(self._tool.tool_id)
        self._notifier.track(ChatEvent.OPEN, tool_id=self._tool.tool_id)

    def close(self) -> None:
        """The chat surface closed."""
        self._notifier.track(
            ChatEvent.CLOSE,
            tool_id=self._tool.tool_id,
            message_count=len(self._messages),
        )

    def click_sponsor(self, message_id: str) -> str | None:
        """Click-through on a sponsor message.

        Returns:
            The sponsor link once its countdown has resolved, else None
        """
        message = self._sponsor_messages.get(message_id)
        if message is None or message.sponsor is None or not message.is_sponsor_resolved:
            return None
        self._notifier.track(
            ChatEvent.SPONSOR_CLICK,
            tool_id=self._tool.tool_id,
            sponsor_id=message.sponsor.id,
        )
        return message.sponsor.link

    # ------------------------------------------------------------------
    # Persistence bridge
    # ------------------------------------------------------------------

    def to_transcript(self) -> ChatTranscript:
        """Settled user and assistant turns, welcome message included."""
        entries = [
            TranscriptEntry(role=m.role.value, content=m.content, created_at=m.created_at)
            for m in self._messages
            if m.role in (MessageRole.USER, MessageRole.ASSISTANT)
            and m.content
            and not m.is_typing
        ]
        return ChatTranscript(
            tool_id=self._tool.tool_id,
            messages=entries,
            user_turn_count=self._user_turn_count,
        )

    def restore(self, transcript: ChatTranscript) -> bool:
        """Replace the conversation with a saved transcript.

        Only allowed while idle; a transcript for another tool is ignored.
        """
        if self._state != TurnState.IDLE or transcript.tool_id != self._tool.tool_id:
            return False
        if not transcript.messages:
            return False

        self._turn_token += 1
        self._messages = []
        self._sponsor_messages.clear()
        self._supersession += 1
        self._suggestions = SuggestionSet(token=self._supersession)
        for entry in transcript.messages:
            self._sequence += 1
            self._messages.append(Message(
                role=MessageRole(entry.role),
                sequence=self._sequence,
                content=entry.content,
                display_content=entry.content,
                created_at=entry.created_at,
            ))
        self._user_turn_count = transcript.user_turn_count
        self._emit()
        return True
