"""IoT Pilot backend package."""
