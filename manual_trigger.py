import sys
import os

# Run from the repo root without installing the package
sys.path.append(os.path.join(os.path.dirname(os.path.abspath(__file__)), "sponsorwatch-backend"))

from sponsorwatch.cli import run

if __name__ == "__main__":
    run()
