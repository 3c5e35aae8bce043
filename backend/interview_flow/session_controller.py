import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger("interview_flow.session_controller")


class SessionController:
    """
    Lifecycle owner of ONE voice call: background tasks, stop signal and
    the single in-flight adaptive-flow turn.
    """

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.stop_event = asyncio.Event()
        self.tasks: list[asyncio.Task] = []
        self.current_question: Optional[str] = None
        self.pending_initial_questions: list[str] = []
        self._turn_in_flight = False

    @property
    def turn_in_flight(self) -> bool:
        return self._turn_in_flight

    def create_task(self, coro):
        task = asyncio.create_task(coro)
        self.tasks.append(task)
        task.add_done_callback(self._forget_task)
        return task

    def _forget_task(self, task: asyncio.Task) -> None:
        try:
            self.tasks.remove(task)
        except ValueError:
            pass

    async def process_turn(self, transcript: str, processor: Callable[[str], Awaitable[Optional[str]]]):
        """Run one answer through `processor` unless another is in progress.

        Returns the processor result, or None when the transcript was dropped.
        """
        if self._turn_in_flight:
            logger.info("turn already in flight, transcript dropped | session_id=%s", self.session_id)
            return None

        self._turn_in_flight = True
        try:
            return await processor(transcript)
        finally:
            self._turn_in_flight = False

    async def stop(self):
        if not self.stop_event.is_set():
            self.stop_event.set()

        pending = list(self.tasks)
        for task in pending:
            task.cancel()

        await asyncio.gather(*pending, return_exceptions=True)
