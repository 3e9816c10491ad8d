"""Tsunami playback core: clock, propagation model, severity classifier."""
