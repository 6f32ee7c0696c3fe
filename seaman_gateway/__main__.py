from __future__ import annotations

from .gateway_node import main


if __name__ == "__main__":
    raise SystemExit(main())
