"""
SubAlign - Subtitle offset estimation for bilingual episode tracks.

Aligns independently authored subtitle tracks to the video timeline using
an embedded reference subtitle stream, or detected speech, as ground truth.
"""

__version__ = "0.1.0";
__author__ = "SubAlign Project";
__license__ = "MIT";
