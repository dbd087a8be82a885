"""
Output sinks

Fire-and-forget outputs used by the dispatcher and the reminder scheduler:
    Speaker          -- spoken output through a TTS command (espeak-ng by default)
    DesktopNotifier  -- desktop notifications through notify-send
    Haptics          -- best-effort vibration/pulse through a configured command
    ConsoleAnnouncer -- visible text announcements (screen-reader style)

Every sink logs and swallows its own failures except where noted; callers
treat them as best-effort.
"""

import shlex
import shutil
import subprocess
import threading
from typing import List, Optional, Sequence, Union

from carevoice.logger import get_logger


class Speaker:
    """Speak text with an external TTS command, one utterance at a time."""

    def __init__(self, config):
        self.logger = get_logger(__name__, config)
        self.command = config.get("tts.command", "espeak-ng")
        self.voice = config.get("tts.voice")
        self._proc: Optional[subprocess.Popen] = None
        self._lock = threading.Lock()

    def _build_cmd(self, text: str) -> List[str]:
        cmd = shlex.split(self.command)
        if self.voice:
            cmd += ["-v", self.voice]
        cmd.append(text)
        return cmd

    def cancel(self):
        """Stop the utterance currently playing, if any."""
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self):
        proc = self._proc
        self._proc = None
        if proc and proc.poll() is None:
            proc.terminate()
            try:
                proc.wait(timeout=1)
            except subprocess.TimeoutExpired:
                proc.kill()

    def speak(self, text: str):
        """Cancel any playing utterance, then start speaking text."""
        if not text:
            return
        with self._lock:
            self._cancel_locked()
            try:
                self._proc = subprocess.Popen(
                    self._build_cmd(text),
                    stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL,
                )
            except FileNotFoundError:
                self.logger.warning(f"TTS command not found: {self.command}")
            except OSError as e:
                self.logger.warning(f"TTS failed: {e}")


class DesktopNotifier:
    """Desktop notifications via notify-send.

    Without notify-send the permission is 'denied' and notify() is a no-op;
    reminders still get spoken.
    """

    def __init__(self, config):
        self.logger = get_logger(__name__, config)
        self.app_name = config.get("notifications.app_name", "CareVoice")
        self._binary = shutil.which("notify-send")

    @property
    def permission(self) -> str:
        return "granted" if self._binary else "denied"

    def notify(self, title: str, body: str, dedup_tag: str = "") -> bool:
        if not self._binary:
            self.logger.debug(f"Notification skipped (no permission): {title}")
            return False
        cmd = [self._binary, f"--app-name={self.app_name}", "--urgency=normal"]
        if dedup_tag:
            # Same tag replaces the earlier bubble instead of stacking
            cmd.append(f"--hint=string:x-canonical-private-synchronous:{dedup_tag}")
        cmd += [title, body]
        try:
            result = subprocess.run(cmd, capture_output=True, timeout=5)
            return result.returncode == 0
        except Exception as e:
            self.logger.warning(f"send_notification failed: {e}")
            return False


class Haptics:
    """Best-effort haptic pulse.

    pattern is a duration in ms or a list of on/off durations. When
    haptics.command is set it is run with the pattern appended as
    comma-separated numbers; otherwise the pulse is only logged.
    """

    def __init__(self, config):
        self.logger = get_logger(__name__, config)
        self.command = config.get("haptics.command")

    def pulse(self, pattern: Union[int, Sequence[int]] = 10):
        values = [pattern] if isinstance(pattern, int) else list(pattern)
        if not self.command:
            self.logger.debug(f"Haptic pulse {values}")
            return
        try:
            subprocess.Popen(
                shlex.split(self.command) + [",".join(str(v) for v in values)],
                stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            self.logger.warning(f"Could not trigger haptic feedback: {e}")


class ConsoleAnnouncer:
    """Visible text announcements. Keeps the last one for inspection."""

    def __init__(self, config=None, echo: bool = True):
        self.logger = get_logger(__name__, config)
        self.echo = echo
        self.last_announcement = ""

    def announce(self, text: str):
        self.last_announcement = text
        self.logger.info(f"Announcement: {text}")
        if self.echo:
            print(f"🔊 {text}", flush=True)
