"""flobot - event-dispatch core of a Mattermost chat bot."""
__version__ = "0.1.0"
