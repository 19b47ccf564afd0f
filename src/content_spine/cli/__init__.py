"""content-spine command line (Typer + Rich)."""
