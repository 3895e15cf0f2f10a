"""
Employee Column Layout

Column names of the employee flat file and of the raw/staging tables.
The flat file names the identifier column `id`; it is stored as `emp_id`.
"""

SOURCE_ID_COLUMN = 'id'
ID_COLUMN = 'emp_id'

# Raw table columns, in flat file order
RAW_COLUMNS = (
    'emp_id',
    'first_name',
    'last_name',
    'birthdate',
    'gender',
    'race',
    'department',
    'jobtitle',
    'location',
    'hire_date',
    'termdate',
    'location_city',
    'location_state',
)

REQUIRED_COLUMNS = ('emp_id', 'birthdate', 'hire_date', 'termdate')

# Categorical attributes passed through the cleaner unchanged
PASSTHROUGH_COLUMNS = (
    'first_name',
    'last_name',
    'gender',
    'race',
    'department',
    'jobtitle',
    'location',
    'location_city',
    'location_state',
)
