# models_bootstrap.py
from schedule import models as _schedule_models
from shift import models as _shift_models
from assignment import models as _assignment_models
from roster import models as _roster_models
from vacation import models as _vacation_models
