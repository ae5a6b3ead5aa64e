"""Service layer: development mock backend and the terminal client."""
