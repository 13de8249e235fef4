"""mdb - build documents incrementally from markdown source directories."""
