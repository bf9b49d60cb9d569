# Memory image and file formats
