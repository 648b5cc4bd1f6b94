"""Core domain package for mediavault.

Core contains watch filtering, capture, and digest logic without any Discord
or storage-specific code, keeping the archival pipeline portable.
"""
