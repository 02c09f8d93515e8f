import logging

from onesphere import Client, Resource, fields, signals, validates


class Tag(Resource):
    class Schema:
        name = fields.String(min_length=1)

    class Meta:
        base_uri = '/rest/tags'
        exclude_operations = ('update',)


class Project(Resource):
    class Schema:
        name = fields.String(min_length=1, max_length=64)
        description = fields.String(nullable=True)
        tagUris = fields.Array(fields.Uri(), unique=True)
        created = fields.DateTimeString()

    class Meta:
        base_uri = '/rest/projects'
        required_fields = ('name',)
        default_request_header = {'X-API-Version': 1}

    @validates('name')
    def validate_name(self, value):
        if value != value.strip():
            raise ValueError('Project names must not start or end with whitespace')


@signals.after_create.connect_via(Project)
def on_project_created(sender, item):
    item.logger.info('Created project %s at %s', item['name'], item['uri'])


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    client = Client.from_env()

    tag = Tag(client, {'name': 'examples'})
    if not tag.retrieve():
        tag.create()

    project = Project(client, {'name': 'Example', 'tagUris': [tag['uri']]})
    if not project.retrieve():
        project.create()

    project.update({'description': 'An example project'})

    for item in Project.find_by(client, {'tagUris': tag['uri']}):
        print(item['name'], item['uri'], item.like({'description': 'An example project'}))
