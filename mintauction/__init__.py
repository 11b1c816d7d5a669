"""
mintauction

A repeating open-bid auction gating issuance of a capped token series:
- Round lifecycle with lazy expiry and permissionless finalize
- Refund-on-outbid with a wrapped-asset fallback
- Gapless, capped token id issuance
- SQLite persistence of the resumable state surface
"""
