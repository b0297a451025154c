"""
Run the validator CLI as a module:

    python -m cli validate --input request.json
    python -m cli analyze batch-report.json --trends
"""

from . import main

if __name__ == '__main__':
    main(prog_name='ortb-validator')
