"""Starter document written by ``spotpatch init``."""

STARTER_DOCUMENT = """\
# Every `spot` is a byte offset into the root source below, counted before
# any patch is applied. Patches are applied top to bottom.

[source]
text = "Hello!"

[[patch]]
do = "insert"
way = "post"
spot = 5
source = { text = ", World" }
"""
