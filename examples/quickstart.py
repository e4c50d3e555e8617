#!/usr/bin/env python3
"""
schemafill quick start: a dry run over two tables described in YAML files.

Rows are kept in memory, printed as INSERT statements and saved as CSV.
"""

import logging
import os

from schemafill import SchemaFiller, load_descriptors
from schemafill.output import save_dataframes

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

here = os.path.dirname(os.path.abspath(__file__))

filler = SchemaFiller.dry_run({
    'Dept': load_descriptors(os.path.join(here, 'schemas', 'dept.yml')),
    'Employee': load_descriptors(os.path.join(here, 'schemas', 'employee.yml')),
})

# Dept is filled first because Employee.dept_id references it
results = filler.fill_tables(os.path.join(here, 'plan.yml'))
for result in results.values():
    print(result)

for statement in filler.executor.statements('Employee')[:3]:
    print(statement)

saved = save_dataframes(filler.executor.to_dataframes(), os.path.join(here, 'output'))
print(f"Saved: {', '.join(saved)}")
