"""
Client module for the Genie voice tutor.

Drives one voice-chat turn against a running server:
- capture: microphone recording and the capture error taxonomy
- pipeline: capture -> transcribe -> converse -> synthesize
- session: Idle/Recording/Submitting/Error state machine
- playback: single live reply audio file and local playback
"""
