"""HTTP and WebSocket interface layer."""
