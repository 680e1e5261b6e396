"""pyvcs.

Reaction adjustment step of the VCS (Villars-Cruise-Smith) algorithm for multiphase
chemical equilibrium. Contains the following modules:

phases: Phase models providing chemical potentials and activity coefficient
    derivatives (pure phases, ideal solutions, regular solutions).

state: The mutable equilibrium state shared by all steps.

jacobian: Assembly of the global activity coefficient Jacobian.

free_energy: Free energy change of a reaction at trial compositions.

hessian: Ideal and activity coefficient contributions to the Hessian diagonal.

line_search: Safeguard against overshooting the root of a reaction's free energy
    change.

rxnadj: The reaction adjustment over all formation reactions.

The outer iteration (convergence control, selection of the component basis) is not
part of this package.

isort:skip_file

"""

__version__ = "0.1.0"

from pyvcs.utils import read_config

# Read the config file from the directory where python process was launched
config = read_config()

from pyvcs._core import *
from pyvcs.utils import *
from pyvcs.phases import *
from pyvcs.state import *
from pyvcs.events import *
from pyvcs.jacobian import *
from pyvcs.free_energy import *
from pyvcs.hessian import *
from pyvcs.line_search import *
from pyvcs.rxnadj import *
