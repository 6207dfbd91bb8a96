"""Group chat bot building blocks: reminders, group management, MIDI melodies, daily pairings and small utilities."""

__version__ = "0.1.0"