from deploy_orchestration.cli import main

raise SystemExit(main())
