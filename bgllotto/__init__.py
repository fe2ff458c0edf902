"""Weighted NFT-holder lottery for Bitgesell lucky-block draws."""

__version__ = "0.1.0"
