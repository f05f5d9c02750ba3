from ical_to_masto.ical_to_masto import main

raise SystemExit(main())
