"""Statements used by the service routers and workflows."""

from .catalog import Plan, Statement, Step

# ---------------------------------------------------------------------------
# HR portal
# ---------------------------------------------------------------------------

HR_SEARCH_BY_HIRE_DATE = Statement(
    "hr.employees.search",
    postgres="""
        SELECT e.id AS emp_no, e.first_name, e.last_name, e.hire_date,
               t.title, s.amount AS salary, d.dept_name
        FROM employee e
        LEFT JOIN title t ON e.id = t.employee_id AND t.to_date = '9999-01-01'
        LEFT JOIN salary s ON e.id = s.employee_id AND s.to_date = '9999-01-01'
        LEFT JOIN department_employee de ON e.id = de.employee_id AND de.to_date = '9999-01-01'
        LEFT JOIN department d ON de.department_id = d.id
        WHERE e.hire_date = %(hire_date)s
        ORDER BY e.id
        LIMIT %(limit)s
    """,
    mysql="""
        SELECT e.emp_no, e.first_name, e.last_name, e.hire_date,
               t.title, s.salary, d.dept_name
        FROM employees e
        LEFT JOIN titles t ON e.emp_no = t.emp_no AND t.to_date = '9999-01-01'
        LEFT JOIN salaries s ON e.emp_no = s.emp_no AND s.to_date = '9999-01-01'
        LEFT JOIN dept_emp de ON e.emp_no = de.emp_no AND de.to_date = '9999-01-01'
        LEFT JOIN departments d ON de.dept_no = d.dept_no
        WHERE e.hire_date = %(hire_date)s
        ORDER BY e.emp_no
        LIMIT %(limit)s
    """,
)

HR_SEARCH_BY_NAME_OR_DEPT = Statement(
    "hr.employees.search_by_name_or_dept",
    postgres="""
        SELECT DISTINCT e.id AS emp_no, e.first_name, e.last_name, d.id AS dept_no, d.dept_name
        FROM employee e
        JOIN department_employee de ON e.id = de.employee_id AND de.to_date = '9999-01-01'
        JOIN department d ON de.department_id = d.id
        WHERE e.first_name ILIKE %(name)s OR e.last_name ILIKE %(name)s
           OR de.department_id = %(dept_no)s
        ORDER BY e.id
        LIMIT %(limit)s
    """,
    mysql="""
        SELECT DISTINCT e.emp_no, e.first_name, e.last_name, d.dept_no, d.dept_name
        FROM employees e
        JOIN dept_emp de ON e.emp_no = de.emp_no AND de.to_date = '9999-01-01'
        JOIN departments d ON de.dept_no = d.dept_no
        WHERE e.first_name LIKE %(name)s OR e.last_name LIKE %(name)s
           OR de.dept_no = %(dept_no)s
        ORDER BY e.emp_no
        LIMIT %(limit)s
    """,
)

HR_LIST_EMPLOYEES = Statement(
    "hr.employees.list",
    postgres="""
        SELECT e.id AS emp_no, e.first_name, e.last_name, e.hire_date,
               d.dept_name, t.title, s.amount AS salary
        FROM employee e
        JOIN department_employee de ON e.id = de.employee_id AND de.to_date = '9999-01-01'
        JOIN department d ON de.department_id = d.id
        JOIN title t ON e.id = t.employee_id AND t.to_date = '9999-01-01'
        JOIN salary s ON e.id = s.employee_id AND s.to_date = '9999-01-01'
        ORDER BY e.id
        LIMIT %(limit)s OFFSET %(offset)s
    """,
    mysql="""
        SELECT e.emp_no, e.first_name, e.last_name, e.hire_date,
               d.dept_name, t.title, s.salary
        FROM employees e
        JOIN dept_emp de ON e.emp_no = de.emp_no AND de.to_date = '9999-01-01'
        JOIN departments d ON de.dept_no = d.dept_no
        JOIN titles t ON e.emp_no = t.emp_no AND t.to_date = '9999-01-01'
        JOIN salaries s ON e.emp_no = s.emp_no AND s.to_date = '9999-01-01'
        ORDER BY e.emp_no
        LIMIT %(limit)s OFFSET %(offset)s
    """,
)

# ---------------------------------------------------------------------------
# Payroll
# ---------------------------------------------------------------------------

PAYROLL_SALARIES_BY_EMPLOYEE = Statement(
    "payroll.salaries.by_employee",
    postgres="""
        SELECT s.employee_id AS emp_no, s.amount AS salary, s.from_date, s.to_date
        FROM salary s
        WHERE s.employee_id = %(emp_no)s
        ORDER BY s.from_date DESC
    """,
    mysql="""
        SELECT s.emp_no, s.salary, s.from_date, s.to_date
        FROM salaries s
        WHERE s.emp_no = %(emp_no)s
        ORDER BY s.from_date DESC
    """,
)

PAYROLL_SALARIES_BY_RANGE = Statement(
    "payroll.salaries.by_range",
    postgres="""
        SELECT e.id AS emp_no, e.first_name, e.last_name, s.amount AS salary, d.dept_name
        FROM employee e
        JOIN salary s ON e.id = s.employee_id AND s.to_date = '9999-01-01'
        JOIN department_employee de ON e.id = de.employee_id AND de.to_date = '9999-01-01'
        JOIN department d ON de.department_id = d.id
        WHERE s.amount BETWEEN %(min_salary)s AND %(max_salary)s
        ORDER BY s.amount DESC
        LIMIT %(limit)s
    """,
    mysql="""
        SELECT e.emp_no, e.first_name, e.last_name, s.salary, d.dept_name
        FROM employees e
        JOIN salaries s ON e.emp_no = s.emp_no AND s.to_date = '9999-01-01'
        JOIN dept_emp de ON e.emp_no = de.emp_no AND de.to_date = '9999-01-01'
        JOIN departments d ON de.dept_no = d.dept_no
        WHERE s.salary BETWEEN %(min_salary)s AND %(max_salary)s
        ORDER BY s.salary DESC
        LIMIT %(limit)s
    """,
)

PAYROLL_HIGHEST_EARNERS = Statement(
    "payroll.reports.highest_earners",
    postgres="""
        SELECT e.id AS emp_no, e.first_name, e.last_name, s.amount AS salary
        FROM salary s
        JOIN employee e ON e.id = s.employee_id
        WHERE s.to_date = '9999-01-01'
        ORDER BY s.amount DESC
        LIMIT %(limit)s
    """,
    mysql="""
        SELECT e.emp_no, e.first_name, e.last_name, s.salary
        FROM salaries s
        JOIN employees e ON e.emp_no = s.emp_no
        WHERE s.to_date = '9999-01-01'
        ORDER BY s.salary DESC
        LIMIT %(limit)s
    """,
)

PAYROLL_DEPARTMENT_AVG_SALARY = Statement(
    "payroll.departments.avg_salary",
    postgres="""
        SELECT d.id AS dept_no, d.dept_name, AVG(s.amount) AS avg_salary,
               COUNT(*) AS employees
        FROM department d
        JOIN department_employee de ON d.id = de.department_id AND de.to_date = '9999-01-01'
        JOIN salary s ON de.employee_id = s.employee_id AND s.to_date = '9999-01-01'
        GROUP BY d.id, d.dept_name
        ORDER BY avg_salary DESC
    """,
    mysql="""
        SELECT d.dept_no, d.dept_name, AVG(s.salary) AS avg_salary,
               COUNT(*) AS employees
        FROM departments d
        JOIN dept_emp de ON d.dept_no = de.dept_no AND de.to_date = '9999-01-01'
        JOIN salaries s ON de.emp_no = s.emp_no AND s.to_date = '9999-01-01'
        GROUP BY d.dept_no, d.dept_name
        ORDER BY avg_salary DESC
    """,
)

# ---------------------------------------------------------------------------
# Performance review
# ---------------------------------------------------------------------------

PERF_CAREER_PROGRESSION = Statement(
    "perf.employees.career_progression",
    postgres="""
        SELECT t.employee_id AS emp_no, t.title, t.from_date, t.to_date,
               (SELECT s.amount FROM salary s
                 WHERE s.employee_id = t.employee_id AND s.from_date <= t.from_date
                 ORDER BY s.from_date DESC LIMIT 1) AS starting_salary
        FROM title t
        WHERE t.employee_id = %(emp_no)s
        ORDER BY t.from_date
    """,
    mysql="""
        SELECT t.emp_no, t.title, t.from_date, t.to_date,
               (SELECT s.salary FROM salaries s
                 WHERE s.emp_no = t.emp_no AND s.from_date <= t.from_date
                 ORDER BY s.from_date DESC LIMIT 1) AS starting_salary
        FROM titles t
        WHERE t.emp_no = %(emp_no)s
        ORDER BY t.from_date
    """,
)

PERF_TOP_PERFORMERS = Statement(
    "perf.employees.top_performers",
    postgres="""
        SELECT e.id AS emp_no, e.first_name, e.last_name,
               MAX(s.amount) - MIN(s.amount) AS salary_growth,
               COUNT(DISTINCT t.title) AS titles_held
        FROM employee e
        JOIN salary s ON e.id = s.employee_id
        JOIN title t ON e.id = t.employee_id
        GROUP BY e.id, e.first_name, e.last_name
        ORDER BY salary_growth DESC
        LIMIT %(limit)s
    """,
    mysql="""
        SELECT e.emp_no, e.first_name, e.last_name,
               MAX(s.salary) - MIN(s.salary) AS salary_growth,
               COUNT(DISTINCT t.title) AS titles_held
        FROM employees e
        JOIN salaries s ON e.emp_no = s.emp_no
        JOIN titles t ON e.emp_no = t.emp_no
        GROUP BY e.emp_no, e.first_name, e.last_name
        ORDER BY salary_growth DESC
        LIMIT %(limit)s
    """,
)

PERF_DEPARTMENT_TENURE = Statement(
    "perf.departments.tenure",
    postgres="""
        SELECT d.id AS dept_no, d.dept_name,
               AVG(CURRENT_DATE - e.hire_date) / 365.25 AS avg_tenure_years,
               COUNT(*) AS employees
        FROM department d
        JOIN department_employee de ON d.id = de.department_id AND de.to_date = '9999-01-01'
        JOIN employee e ON e.id = de.employee_id
        GROUP BY d.id, d.dept_name
        ORDER BY avg_tenure_years DESC
    """,
    mysql="""
        SELECT d.dept_no, d.dept_name,
               AVG(DATEDIFF(CURDATE(), e.hire_date)) / 365.25 AS avg_tenure_years,
               COUNT(*) AS employees
        FROM departments d
        JOIN dept_emp de ON d.dept_no = de.dept_no AND de.to_date = '9999-01-01'
        JOIN employees e ON e.emp_no = de.emp_no
        GROUP BY d.dept_no, d.dept_name
        ORDER BY avg_tenure_years DESC
    """,
)

# ---------------------------------------------------------------------------
# Admin console
# ---------------------------------------------------------------------------

ADMIN_DEPARTMENT_DETAILS = Statement(
    "admin.departments.details",
    postgres="""
        SELECT d.id AS dept_no, d.dept_name,
               COUNT(de.employee_id) AS employees,
               MIN(s.amount) AS min_salary, MAX(s.amount) AS max_salary,
               AVG(s.amount) AS avg_salary
        FROM department d
        LEFT JOIN department_employee de ON d.id = de.department_id AND de.to_date = '9999-01-01'
        LEFT JOIN salary s ON de.employee_id = s.employee_id AND s.to_date = '9999-01-01'
        GROUP BY d.id, d.dept_name
        ORDER BY employees DESC
    """,
    mysql="""
        SELECT d.dept_no, d.dept_name,
               COUNT(de.emp_no) AS employees,
               MIN(s.salary) AS min_salary, MAX(s.salary) AS max_salary,
               AVG(s.salary) AS avg_salary
        FROM departments d
        LEFT JOIN dept_emp de ON d.dept_no = de.dept_no AND de.to_date = '9999-01-01'
        LEFT JOIN salaries s ON de.emp_no = s.emp_no AND s.to_date = '9999-01-01'
        GROUP BY d.dept_no, d.dept_name
        ORDER BY employees DESC
    """,
)

ADMIN_EMPLOYEE_DETAILS = Statement(
    "admin.employees.details",
    postgres="""
        SELECT e.id AS emp_no, e.first_name, e.last_name, e.birth_date, e.gender, e.hire_date,
               t.title, s.amount AS salary, d.id AS dept_no, d.dept_name
        FROM employee e
        LEFT JOIN title t ON e.id = t.employee_id AND t.to_date = '9999-01-01'
        LEFT JOIN salary s ON e.id = s.employee_id AND s.to_date = '9999-01-01'
        LEFT JOIN department_employee de ON e.id = de.employee_id AND de.to_date = '9999-01-01'
        LEFT JOIN department d ON de.department_id = d.id
        WHERE e.id = %(emp_no)s
    """,
    mysql="""
        SELECT e.emp_no, e.first_name, e.last_name, e.birth_date, e.gender, e.hire_date,
               t.title, s.salary, d.dept_no, d.dept_name
        FROM employees e
        LEFT JOIN titles t ON e.emp_no = t.emp_no AND t.to_date = '9999-01-01'
        LEFT JOIN salaries s ON e.emp_no = s.emp_no AND s.to_date = '9999-01-01'
        LEFT JOIN dept_emp de ON e.emp_no = de.emp_no AND de.to_date = '9999-01-01'
        LEFT JOIN departments d ON de.dept_no = d.dept_no
        WHERE e.emp_no = %(emp_no)s
    """,
)

# ---------------------------------------------------------------------------
# Reporting dashboard
# ---------------------------------------------------------------------------

REPORTS_DEPARTMENT_AVERAGE_SALARY = PAYROLL_DEPARTMENT_AVG_SALARY._replace(
    name="reports.departments.average_salary"
)

REPORTS_LONG_TENURE = Statement(
    "reports.employees.long_tenure",
    postgres="""
        SELECT e.id AS emp_no, e.first_name, e.last_name, e.hire_date, d.dept_name
        FROM employee e
        JOIN department_employee de ON e.id = de.employee_id AND de.to_date = '9999-01-01'
        JOIN department d ON de.department_id = d.id
        WHERE e.hire_date <= CURRENT_DATE - make_interval(years => %(years)s)
        ORDER BY e.hire_date
        LIMIT %(limit)s
    """,
    mysql="""
        SELECT e.emp_no, e.first_name, e.last_name, e.hire_date, d.dept_name
        FROM employees e
        JOIN dept_emp de ON e.emp_no = de.emp_no AND de.to_date = '9999-01-01'
        JOIN departments d ON de.dept_no = d.dept_no
        WHERE e.hire_date <= DATE_SUB(CURDATE(), INTERVAL %(years)s YEAR)
        ORDER BY e.hire_date
        LIMIT %(limit)s
    """,
)

REPORTS_HIGHEST_BY_DEPT = Statement(
    "reports.salaries.highest_by_dept",
    postgres="""
        SELECT dept_no, dept_name, emp_no, first_name, last_name, salary
        FROM (
            SELECT d.id AS dept_no, d.dept_name, e.id AS emp_no, e.first_name, e.last_name,
                   s.amount AS salary,
                   ROW_NUMBER() OVER (PARTITION BY d.id ORDER BY s.amount DESC) AS rn
            FROM department d
            JOIN department_employee de ON d.id = de.department_id AND de.to_date = '9999-01-01'
            JOIN employee e ON e.id = de.employee_id
            JOIN salary s ON e.id = s.employee_id AND s.to_date = '9999-01-01'
        ) ranked
        WHERE rn = 1
        ORDER BY salary DESC
    """,
    mysql="""
        SELECT dept_no, dept_name, emp_no, first_name, last_name, salary
        FROM (
            SELECT d.dept_no, d.dept_name, e.emp_no, e.first_name, e.last_name, s.salary,
                   ROW_NUMBER() OVER (PARTITION BY d.dept_no ORDER BY s.salary DESC) AS rn
            FROM departments d
            JOIN dept_emp de ON d.dept_no = de.dept_no AND de.to_date = '9999-01-01'
            JOIN employees e ON e.emp_no = de.emp_no
            JOIN salaries s ON e.emp_no = s.emp_no AND s.to_date = '9999-01-01'
        ) ranked
        WHERE rn = 1
        ORDER BY salary DESC
    """,
)

# ---------------------------------------------------------------------------
# Mutations. Each plan is a short list of set-based steps run in one
# transaction. A step only touches the rows an earlier step of the same run
# picked: PostgreSQL carries them through a data-modifying CTE, MySQL through
# a temporary table that lives on the leased connection.
# ---------------------------------------------------------------------------

TRANSFER_DEPARTMENT = Plan(
    "transfer.department",
    postgres=(
        Step(
            """
            WITH picked AS (
                SELECT de.employee_id
                FROM department_employee de
                WHERE de.department_id = %(source)s
                  AND de.to_date = '9999-01-01'
                  AND NOT EXISTS (
                      SELECT 1 FROM department_employee t
                      WHERE t.employee_id = de.employee_id
                        AND t.department_id = %(target)s
                  )
                ORDER BY de.employee_id
                LIMIT %(limit)s
                FOR UPDATE
            ), moved AS (
                UPDATE department_employee de
                SET to_date = CURRENT_DATE
                FROM picked
                WHERE de.employee_id = picked.employee_id
                  AND de.department_id = %(source)s
                  AND de.to_date = '9999-01-01'
                RETURNING de.employee_id
            )
            INSERT INTO department_employee (employee_id, department_id, from_date, to_date)
            SELECT employee_id, %(target)s, CURRENT_DATE, '9999-01-01'
            FROM moved
            """,
            counted=True,
        ),
    ),
    mysql=(
        Step("DROP TEMPORARY TABLE IF EXISTS transfer_batch"),
        Step("CREATE TEMPORARY TABLE transfer_batch (emp_no INT NOT NULL PRIMARY KEY)"),
        Step(
            """
            INSERT INTO transfer_batch (emp_no)
            SELECT src.emp_no
            FROM dept_emp src
            WHERE src.dept_no = %(source)s
              AND src.to_date = '9999-01-01'
              AND NOT EXISTS (
                  SELECT 1 FROM dept_emp t
                  WHERE t.emp_no = src.emp_no AND t.dept_no = %(target)s
              )
            ORDER BY src.emp_no
            LIMIT %(limit)s
            """
        ),
        Step(
            """
            UPDATE dept_emp de
            JOIN transfer_batch b ON b.emp_no = de.emp_no
            SET de.to_date = CURDATE()
            WHERE de.dept_no = %(source)s AND de.to_date = '9999-01-01'
            """
        ),
        Step(
            """
            INSERT INTO dept_emp (emp_no, dept_no, from_date, to_date)
            SELECT b.emp_no, %(target)s, CURDATE(), '9999-01-01'
            FROM transfer_batch b
            """,
            counted=True,
        ),
        Step("DROP TEMPORARY TABLE transfer_batch"),
    ),
)

# A current salary row that already starts today is changed in place; older
# current rows are closed and replaced by a row starting today. Both halves
# count, so a repeated change on the same day reports the same number.
ADJUST_DEPARTMENT_SALARIES = Plan(
    "salary.adjust_department",
    postgres=(
        Step(
            """
            UPDATE salary s
            SET amount = ROUND(s.amount * (1 + %(percent)s / 100.0))
            FROM department_employee de
            WHERE s.employee_id = de.employee_id
              AND de.department_id = %(department)s
              AND de.to_date = '9999-01-01'
              AND s.to_date = '9999-01-01'
              AND s.from_date = CURRENT_DATE
            """,
            counted=True,
        ),
        Step(
            """
            WITH closed AS (
                UPDATE salary s
                SET to_date = CURRENT_DATE
                FROM department_employee de
                WHERE s.employee_id = de.employee_id
                  AND de.department_id = %(department)s
                  AND de.to_date = '9999-01-01'
                  AND s.to_date = '9999-01-01'
                  AND s.from_date < CURRENT_DATE
                RETURNING s.employee_id, s.amount
            )
            INSERT INTO salary (employee_id, amount, from_date, to_date)
            SELECT employee_id, ROUND(amount * (1 + %(percent)s / 100.0)),
                   CURRENT_DATE, '9999-01-01'
            FROM closed
            """,
            counted=True,
        ),
    ),
    mysql=(
        Step(
            """
            UPDATE salaries s
            JOIN dept_emp de ON s.emp_no = de.emp_no
            SET s.salary = ROUND(s.salary * (1 + %(percent)s / 100.0))
            WHERE de.dept_no = %(department)s
              AND de.to_date = '9999-01-01'
              AND s.to_date = '9999-01-01'
              AND s.from_date = CURDATE()
            """,
            counted=True,
        ),
        Step("DROP TEMPORARY TABLE IF EXISTS salary_batch"),
        Step(
            "CREATE TEMPORARY TABLE salary_batch "
            "(emp_no INT NOT NULL PRIMARY KEY, salary INT NOT NULL)"
        ),
        Step(
            """
            INSERT INTO salary_batch (emp_no, salary)
            SELECT s.emp_no, s.salary
            FROM salaries s
            JOIN dept_emp de ON s.emp_no = de.emp_no
            WHERE de.dept_no = %(department)s
              AND de.to_date = '9999-01-01'
              AND s.to_date = '9999-01-01'
              AND s.from_date < CURDATE()
            """
        ),
        Step(
            """
            UPDATE salaries s
            JOIN salary_batch b ON b.emp_no = s.emp_no
            SET s.to_date = CURDATE()
            WHERE s.to_date = '9999-01-01' AND s.from_date < CURDATE()
            """
        ),
        Step(
            """
            INSERT INTO salaries (emp_no, salary, from_date, to_date)
            SELECT b.emp_no, ROUND(b.salary * (1 + %(percent)s / 100.0)), CURDATE(), '9999-01-01'
            FROM salary_batch b
            """,
            counted=True,
        ),
        Step("DROP TEMPORARY TABLE salary_batch"),
    ),
)

UPDATE_EMPLOYEE_SALARY = Plan(
    "salary.update_employee",
    postgres=(
        Step(
            """
            UPDATE salary SET amount = %(amount)s
            WHERE employee_id = %(emp_no)s
              AND to_date = '9999-01-01'
              AND from_date = CURRENT_DATE
            """,
            counted=True,
        ),
        Step(
            """
            UPDATE salary SET to_date = CURRENT_DATE
            WHERE employee_id = %(emp_no)s AND to_date = '9999-01-01' AND from_date < CURRENT_DATE
            """
        ),
        Step(
            """
            INSERT INTO salary (employee_id, amount, from_date, to_date)
            SELECT %(emp_no)s, %(amount)s, CURRENT_DATE, '9999-01-01'
            WHERE NOT EXISTS (
                SELECT 1 FROM salary
                WHERE employee_id = %(emp_no)s AND from_date = CURRENT_DATE
            )
            """,
            counted=True,
        ),
    ),
    mysql=(
        Step(
            """
            UPDATE salaries SET salary = %(amount)s
            WHERE emp_no = %(emp_no)s
              AND to_date = '9999-01-01'
              AND from_date = CURDATE()
            """,
            counted=True,
        ),
        Step(
            """
            UPDATE salaries SET to_date = CURDATE()
            WHERE emp_no = %(emp_no)s AND to_date = '9999-01-01' AND from_date < CURDATE()
            """
        ),
        Step(
            """
            INSERT INTO salaries (emp_no, salary, from_date, to_date)
            SELECT %(emp_no)s, %(amount)s, CURDATE(), '9999-01-01'
            FROM DUAL
            WHERE NOT EXISTS (
                SELECT 1 FROM salaries
                WHERE emp_no = %(emp_no)s AND from_date = CURDATE()
            )
            """,
            counted=True,
        ),
    ),
)

PROMOTE_TITLES = Plan(
    "title.promote_department",
    postgres=(
        Step(
            """
            WITH promoted AS (
                UPDATE title t
                SET to_date = CURRENT_DATE
                FROM department_employee de
                WHERE t.employee_id = de.employee_id
                  AND de.department_id = %(department)s
                  AND de.to_date = '9999-01-01'
                  AND t.title = %(from_title)s
                  AND t.to_date = '9999-01-01'
                RETURNING t.employee_id
            )
            INSERT INTO title (employee_id, title, from_date, to_date)
            SELECT employee_id, %(to_title)s, CURRENT_DATE, '9999-01-01'
            FROM promoted
            ON CONFLICT DO NOTHING
            """,
            counted=True,
        ),
    ),
    mysql=(
        Step("DROP TEMPORARY TABLE IF EXISTS title_batch"),
        Step("CREATE TEMPORARY TABLE title_batch (emp_no INT NOT NULL PRIMARY KEY)"),
        Step(
            """
            INSERT IGNORE INTO title_batch (emp_no)
            SELECT t.emp_no
            FROM titles t
            JOIN dept_emp de ON t.emp_no = de.emp_no
            WHERE de.dept_no = %(department)s
              AND de.to_date = '9999-01-01'
              AND t.title = %(from_title)s
              AND t.to_date = '9999-01-01'
            """
        ),
        Step(
            """
            UPDATE titles t
            JOIN title_batch b ON b.emp_no = t.emp_no
            SET t.to_date = CURDATE()
            WHERE t.title = %(from_title)s AND t.to_date = '9999-01-01'
            """
        ),
        Step(
            """
            INSERT IGNORE INTO titles (emp_no, title, from_date, to_date)
            SELECT b.emp_no, %(to_title)s, CURDATE(), '9999-01-01'
            FROM title_batch b
            """,
            counted=True,
        ),
        Step("DROP TEMPORARY TABLE title_batch"),
    ),
)
