"""
DMod 待办示例

声明 Project / Task 两个模型（Task 先于 Project 声明并引用它），
注册到内存 SQLite，演示插入、按条件查询以及修改唯一字段后的更新。
"""

import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dmod import Database, SQLiteAdapter, table


def main() -> None:
    logging.basicConfig(level=logging.DEBUG, format='%(name)s: %(message)s')

    task = (table('Task')
            .auto_increment_field('id')
            .unique_field('name')
            .date_time_field('created')
            .date_time_field('due')
            .has_one('Project'))
    project = table('Project').auto_increment_field('id').unique_field('title')

    db = Database(SQLiteAdapter()).register(task, project)
    db.ready.result()

    print("DDL:")
    for schema in db.schemas.values():
        print(" ", schema.create_table_sql())

    inbox = db.create_project({'title': 'Inbox'}).save().result()
    first = db.create_task({'name': 'write docs', 'project': inbox}).save().result()
    db.create_task({'name': 'write tests', 'project': inbox}).save().result()
    print(f"\nCreated task #{first.id} in project #{inbox.id}")

    first.name = 'write better docs'
    first.save(lambda record: print(f"Saving changes {dict(record.changes)}")).result()

    print("\nTasks matching 'write%':")
    for found in task.by({'name': {'like': 'write%'}}).result():
        print(" ", dict(found.to_dict()))

    db.close()


if __name__ == '__main__':
    main()
