from blinker import Namespace

_onesphere = Namespace()

before_create = _onesphere.signal('before-create')

after_create = _onesphere.signal('after-create')

before_update = _onesphere.signal('before-update')

after_update = _onesphere.signal('after-update')

before_delete = _onesphere.signal('before-delete')

after_delete = _onesphere.signal('after-delete')
