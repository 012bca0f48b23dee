"""claimgate - self-service claim verification and fulfillment hand-off."""
