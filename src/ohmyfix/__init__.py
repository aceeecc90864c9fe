"""
OhMyFix -- AI code review that turns model replies into concrete edits.

OhMyFix sends source text to a language model, parses the
``Error:`` / ``Solution:`` reply into findings, and applies each accepted
fix line by line against the current state of the file.
"""

from ohmyfix._version import __version__

__author__ = "OhMyFix Team"
