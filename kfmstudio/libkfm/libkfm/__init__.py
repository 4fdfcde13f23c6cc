"""libkfm: read, edit and write Gamebryo KFM animation graph files."""
