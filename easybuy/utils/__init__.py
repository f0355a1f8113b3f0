"""
utils package
-------------

Pure helpers with no I/O, such as the multipart review encoder.
"""
