"""
Full-screen pygame stimulus window.

Shows a black screen while a trial is armed and a white screen as the
stimulus. Keyboard keys, mouse buttons and joystick buttons are qualifying
responses; Escape aborts the run and closing the window quits it.

SDL has no awaitable event source, so a background task pumps the event
queue every ``event_pump_interval`` seconds and timestamps each batch with
the monotonic clock as it is pumped.
"""

import asyncio
from typing import Optional, Sequence

import pygame

from ..engine.backend import Backend, InputEvent, InputKind
from ..engine.clock import MonotonicClock


class PygameBackend(Backend):
    """Stimulus window and input source backed by pygame."""

    name = 'pygame'

    def __init__(
        self,
        clock=None,
        fullscreen: bool = True,
        window_size: Sequence[int] = (800, 600),
        wait_color: Sequence[int] = (0, 0, 0),
        stimulus_color: Sequence[int] = (255, 255, 255),
        event_pump_interval: float = 0.0005,
        vsync: bool = True,
        keyboard: bool = True,
        mouse: bool = True,
        joystick: bool = True,
    ):
        super().__init__(clock if clock is not None else MonotonicClock())
        self.fullscreen = fullscreen
        self.window_size = tuple(window_size)
        self.wait_color = tuple(wait_color)
        self.stimulus_color = tuple(stimulus_color)
        self.event_pump_interval = event_pump_interval
        self.vsync = vsync
        self.accept_keyboard = keyboard
        self.accept_mouse = mouse
        self.accept_joystick = joystick

        self.screen = None
        self._joysticks = []
        self._pump_task: Optional[asyncio.Task] = None

    @classmethod
    def from_config(cls, display_config: dict, input_config: dict, fullscreen: Optional[bool] = None) -> 'PygameBackend':
        return cls(
            fullscreen=display_config.get('fullscreen', True) if fullscreen is None else fullscreen,
            window_size=display_config.get('window_size', (800, 600)),
            wait_color=display_config.get('wait_color', (0, 0, 0)),
            stimulus_color=display_config.get('stimulus_color', (255, 255, 255)),
            event_pump_interval=display_config.get('event_pump_interval', 0.0005),
            vsync=display_config.get('vsync', True),
            keyboard=input_config.get('keyboard', True),
            mouse=input_config.get('mouse', True),
            joystick=input_config.get('joystick', True),
        )

    async def _open(self):
        pygame.display.init()
        flags = pygame.FULLSCREEN if self.fullscreen else 0
        size = (0, 0) if self.fullscreen else self.window_size
        try:
            self.screen = pygame.display.set_mode(size, flags, vsync=1 if self.vsync else 0)
        except pygame.error as e:
            self.logger.warning(f"VSync display mode unavailable ({e}), falling back to default mode")
            self.screen = pygame.display.set_mode(size, flags)
        pygame.display.set_caption("PurpleReaction")
        pygame.mouse.set_visible(False)
        pygame.event.set_blocked([pygame.MOUSEMOTION, pygame.JOYAXISMOTION, pygame.JOYHATMOTION, pygame.JOYBALLMOTION])

        if self.accept_joystick:
            pygame.joystick.init()
            for i in range(pygame.joystick.get_count()):
                stick = pygame.joystick.Joystick(i)
                stick.init()
                self._joysticks.append(stick)
                self.logger.info(f"Joystick detected: {stick.get_name()}")

        self.logger.info(f"Stimulus window open: {self.screen.get_size()[0]}x{self.screen.get_size()[1]}, "
                         f"fullscreen={self.fullscreen}")
        self._fill(self.wait_color)
        self._pump_task = asyncio.ensure_future(self._pump())

    async def _close(self):
        if self._pump_task is not None:
            self._pump_task.cancel()
            try:
                await self._pump_task
            except asyncio.CancelledError:
                pass
            self._pump_task = None
        self._joysticks.clear()
        pygame.mouse.set_visible(True)
        pygame.quit()
        self.screen = None

    async def _pump(self):
        while True:
            self.pump_events()
            await asyncio.sleep(self.event_pump_interval)

    def pump_events(self) -> int:
        """Move pending SDL events into the input queue. Returns the number queued."""
        timestamp = self.clock.now_ns()
        queued = 0
        for event in pygame.event.get():
            translated = self.translate_event(event, timestamp)
            if translated is not None:
                self.post_event(translated)
                queued += 1
        return queued

    def translate_event(self, event, timestamp_ns: int) -> Optional[InputEvent]:
        """Map a pygame event to an input event, or None if it does not count."""
        if event.type == pygame.QUIT:
            return InputEvent(InputKind.QUIT, timestamp_ns, 'window')
        if event.type == pygame.KEYDOWN:
            if event.key == pygame.K_ESCAPE:
                return InputEvent(InputKind.ABORT, timestamp_ns, 'key:escape')
            if self.accept_keyboard:
                return InputEvent(InputKind.PRESS, timestamp_ns, f"key:{pygame.key.name(event.key)}")
            return None
        if event.type == pygame.MOUSEBUTTONDOWN and self.accept_mouse:
            return InputEvent(InputKind.PRESS, timestamp_ns, f"mouse:{event.button}")
        if event.type == pygame.JOYBUTTONDOWN and self.accept_joystick:
            return InputEvent(InputKind.PRESS, timestamp_ns, f"joystick:{event.button}")
        return None

    def _fill(self, color):
        self.screen.fill(color)
        pygame.display.flip()

    async def present_wait_screen(self, planned_delay_seconds: float):
        self._fill(self.wait_color)

    async def present_stimulus(self) -> int:
        # Presses still sitting in SDL's queue happened before this frame
        self.pump_events()
        before = self.clock.now_ns()
        self._fill(self.stimulus_color)
        after = self.clock.now_ns()
        # flip() blocks until the buffer swap with vsync; take the midpoint
        return (before + after) // 2
