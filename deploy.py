"""
Contract Deployment Wrapper
Runs scripts/check_system.py, then main.py migrate with any extra arguments
"""

import subprocess
import sys

if __name__ == "__main__":
    print("=" * 70)
    print("TokenAllocation Deployment")
    print("=" * 70)
    print()

    # Pre-flight checks
    check = subprocess.run(
        [sys.executable, "-m", "scripts.check_system"],
        cwd="."
    )

    if check.returncode != 0:
        print("\nSystem check failed - fix the issues above before deploying")
        sys.exit(check.returncode)

    # Run migrations
    result = subprocess.run(
        [sys.executable, "main.py", "migrate"] + sys.argv[1:],
        cwd="."
    )

    sys.exit(result.returncode)
