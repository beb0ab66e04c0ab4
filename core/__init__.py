"""
Live Yap core: ordered translation pipeline and live capture session.
"""
