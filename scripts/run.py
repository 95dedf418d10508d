# scripts/run.py
from appinv.app.main import main

if __name__ == "__main__":
    raise SystemExit(main())
