"""clipedit — manifest-driven video editing on top of ffmpeg.

Apply trim, insert, merge, speed and audio edits to a base clip and
export a single mp4. Edits are declared in a YAML manifest; each stage
is expressed as a typed filter graph and handed to ffmpeg.
"""
