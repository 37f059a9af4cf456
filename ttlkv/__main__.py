from __future__ import annotations

from ttlkv.main import main

raise SystemExit(main())
