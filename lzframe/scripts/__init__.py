# Licensed under the GPLv3 - see LICENSE
