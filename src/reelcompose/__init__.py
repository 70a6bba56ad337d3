"""reelcompose — short vertical video assembly.

Plan a talking-head timeline with cutaway (B-roll) inserts, build
word-synchronized caption cues, compute a deterministic pan/zoom effect,
then hand the plan to ffmpeg for stitching and final rendering.
"""
