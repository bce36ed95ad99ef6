from src.cli.main import main

raise SystemExit(main())
