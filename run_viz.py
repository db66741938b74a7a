from geo_tokens.viewer import run_live

if __name__ == "__main__":
    # Walk around the classroom with the arrow keys; click caches to pick up / craft.
    run_live(fps=10)
