"""Entry point for running work-status as a module."""

from work_status.tool.work_status import main

if __name__ == "__main__":
    main()
