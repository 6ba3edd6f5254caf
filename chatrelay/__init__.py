"""
chatrelay: channel routing and formatting engine for multiplayer game chat.

Players submit raw chat input; the engine resolves the channel it belongs to,
checks eligibility, filters and transforms the text, renders it per audience
and delivers it to the computed recipient set.
"""

__version__ = "0.1.0"
