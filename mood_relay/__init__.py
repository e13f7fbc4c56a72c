"""
Mood Relay - mood matching and private messaging service.

This package provides a webserver where users submit a mood reading tied to a
location, discover other users sharing the same mood nearby, and exchange
private real-time messages over Socket.IO.
"""

__version__ = "0.1.0"
