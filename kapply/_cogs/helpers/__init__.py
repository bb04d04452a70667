"""
Miscellaneous helpers with no domain knowledge of the resources or handlers.
"""
