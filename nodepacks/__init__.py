"""Node packs bundled with nodeflow."""
