"""
Static configuration keys and bundled defaults.
"""
