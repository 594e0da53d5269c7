from primefactors.cli import main

raise SystemExit(main())
