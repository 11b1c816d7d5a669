"""Auction core: state machine, issuance, value movement"""
