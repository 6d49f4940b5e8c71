"""Narration playback and arrival announcements."""

import shutil
import subprocess
from typing import Optional, Callable

from .config import category_info
from .geo import format_distance
from .models import ArrivalEvent

# Tried in order; first one found on PATH plays the narration
PLAYERS = [
    ["termux-media-player", "play"],
    ["mpv", "--no-video", "--really-quiet"],
    ["ffplay", "-nodisp", "-autoexit", "-loglevel", "quiet"],
]


class Audio:
    """Text-to-speech and narration playback"""

    callback: Optional[Callable[[str, str], None]] = None  # Class-level callback (kind, payload)

    @classmethod
    def set_callback(cls, callback: Optional[Callable[[str, str], None]]):
        """Set callback function for audio events"""
        cls.callback = callback

    @staticmethod
    def speak(text: str):
        """Speak text using espeak (available in Termux)"""
        if Audio.callback:
            Audio.callback("speak", text)

        try:
            subprocess.run(
                ["espeak", "-s", "150", text],
                capture_output=True,
                timeout=10
            )
        except FileNotFoundError:
            print(f"[AUDIO] {text}")
        except subprocess.SubprocessError as e:
            print(f"Audio error: {e}")
            print(f"[AUDIO] {text}")

    @staticmethod
    def play(asset: str) -> bool:
        """Play a narration file with the first available player"""
        if Audio.callback:
            Audio.callback("play", asset)

        for player in PLAYERS:
            if not shutil.which(player[0]):
                continue
            try:
                subprocess.run(player + [asset], capture_output=True, timeout=600)
                return True
            except subprocess.SubprocessError as e:
                print(f"Audio error ({player[0]}): {e}")
        print(f"[AUDIO] would play {asset}")
        return False


class ArrivalNotifier:
    """Announces arrivals and starts the point's narration"""

    def __init__(self, audio: Audio, logger=None, store=None, play_narration: bool = True,
                 narration=None):
        self.audio = audio
        self.logger = logger
        self.store = store
        self.play_narration = play_narration
        self.narration = narration  # NarrationCache, or None to pass asset names through

    def announcement(self, event: ArrivalEvent, distance: Optional[float] = None) -> str:
        point = event.point
        if point is None:
            return f"You are near point {event.point_id}"
        label = category_info(point.category).display_name.lower()
        text = f"You are near {point.name}, a {label} site"
        if distance is not None:
            text += f", {format_distance(distance)} away"
        return text

    def notify(self, event: ArrivalEvent, distance: Optional[float] = None):
        text = self.announcement(event, distance)
        if self.logger:
            self.logger.log("Arrival", {"point_id": event.point_id, "timestamp": event.timestamp})
        if self.store:
            self.store.record_arrival(event)
        self.audio.speak(text)
        if self.play_narration and event.point is not None:
            asset = event.point.narration or category_info(event.point.category).narration
            if self.narration is not None:
                path = self.narration.resolve(asset)
                if path is None:
                    if self.logger:
                        self.logger.log("Narration unavailable", {"asset": asset})
                    return
                asset = path
            self.audio.play(asset)
