"""
Runnable applications built on identitylab.
"""
