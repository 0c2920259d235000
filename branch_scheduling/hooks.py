app_name = "branch_scheduling"
app_title = "Branch Scheduling"
app_publisher = "Sebastian Ortiz Valencia"
app_description = "Horarios de staff en múltiples sucursales, horas reservables y detección de conflictos"
app_email = "sebastianortiz989@gmail.com"
app_license = "mit"

# Apps
# ------------------

# required_apps = []

# Includes in <head>
# ------------------

# include js in doctype views
# doctype_js = {"Staff Date Assignment" : "public/js/staff_date_assignment.js"}

# Testing
# -------

# before_tests = "branch_scheduling.install.before_tests"

# Overriding Methods
# ------------------------------
#
# override_whitelisted_methods = {
# 	"frappe.desk.doctype.event.event.get_events": "branch_scheduling.event.get_events"
# }
