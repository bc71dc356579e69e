from zoorepo.cli import main

raise SystemExit(main())
