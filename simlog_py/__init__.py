"""Decoders for RoboCup soccer simulation game logs.

Architecture highlights:
- Replay (2D/3D) and ULG (2D soccer server) decoders behind one decoder contract
- Resumable, batch-wise decoding of partial and incrementally growing input
- Registry-based decoder selection by file name
"""
